"""
Drawing and dataset helpers for the K-Means trainer.

Kept apart from the Tk window so they can be used (and tested) with any
matplotlib Axes, including the headless Agg backend.
"""

import numpy as np
from matplotlib.patches import Circle
from sklearn.datasets import make_blobs

from kmeans_core import cluster_sse, members_of

# One colour per cluster, cycled when splits push past eight
CLUSTER_PALETTE = [
    "#FF6B6B",  # red
    "#4ECDC4",  # teal
    "#45B7D1",  # blue
    "#96CEB4",  # green
    "#FFEEAD",  # yellow
    "#D4A5A5",  # pink
    "#9B59B6",  # purple
    "#3498DB",  # light blue
]

POINT_SIZE = 30
CENTROID_SIZE = 250


def cluster_colour(cluster_id):
    return CLUSTER_PALETTE[cluster_id % len(CLUSTER_PALETTE)]


def blob_points(n_samples, n_centers, cluster_std, width, height, pad=40, random_state=None):
    """``make_blobs`` data rescaled to fit inside a ``width`` x ``height`` canvas."""
    X, _ = make_blobs(
        n_samples=n_samples,
        centers=n_centers,
        cluster_std=cluster_std,
        random_state=random_state,
    )
    mins, maxs = X.min(0), X.max(0)
    span = np.where(maxs - mins > 0, maxs - mins, 1.0)
    Xn = (X - mins) / span
    xs = pad + Xn[:, 0] * (width - 2 * pad)
    ys = pad + Xn[:, 1] * (height - 2 * pad)
    return [(float(x), float(y)) for x, y in zip(xs, ys)]


def sse_rows(points, centroids):
    """(cluster_id, SSE) per centroid, largest first."""
    rows = [(c.cluster_id, cluster_sse(members_of(points, c.cluster_id), c)) for c in centroids]
    rows.sort(key=lambda r: r[1], reverse=True)
    return rows


def draw_state(ax, points, centroids, width, height, threshold=None, title=None):
    """Scatter points by cluster, star the centroids and optionally ring them
    with the dispersion threshold."""
    ax.clear()
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)  # screen-style: y grows downwards
    ax.set_aspect("equal", adjustable="box")
    ax.set_title(title or "K-means (k={})".format(len(centroids)))

    data = [p for p in points if not p.is_centroid]
    if data:
        xy = np.array([(p.x, p.y) for p in data])
        ax.scatter(xy[:, 0], xy[:, 1], s=POINT_SIZE,
                   c=[cluster_colour(p.cluster_id) for p in data], alpha=0.8)
    for p in data:
        if p.original_value is not None:
            ax.annotate(f"{p.original_value} ({p.numeric_value})", (p.x, p.y),
                        xytext=(4, 4), textcoords="offset points", fontsize="x-small")

    for c in centroids:
        colour = cluster_colour(c.cluster_id)
        ax.scatter(c.x, c.y, marker="*", s=CENTROID_SIZE, c=[colour],
                   edgecolors="k", linewidths=1.5, label=f"Cluster {c.cluster_id}")
        if threshold:
            ax.add_patch(Circle((c.x, c.y), threshold, fill=False,
                                edgecolor=colour, linestyle="--", linewidth=1))
    if centroids:
        ax.legend(loc="upper right", fontsize="small")
    return ax
