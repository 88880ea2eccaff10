"""
Core geometry for the K-Means trainer: points, distances, centroids,
nearest-cluster lookup, the dispersion split and the categorical encoder.

Everything here is pure and works on plain lists of ``Point`` records so the
engine and the Tk front-end can share it.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# Returned by nearest_cluster when there is nothing to be near to
NO_CLUSTER = -1

# =============================================================================
# Errors
# =============================================================================


class KMeansError(Exception):
    """Base class for everything the trainer raises on purpose."""


class InsufficientDataError(KMeansError):
    """Fewer points than requested clusters."""

    def __init__(self, n_points, n_clusters):
        super().__init__(
            f"Need at least {n_clusters} points to initialise {n_clusters} clusters "
            f"(have {n_points}). Add more points first."
        )
        self.n_points = n_points
        self.n_clusters = n_clusters


class EmptyInputError(KMeansError, ValueError):
    """A centroid was requested for an empty collection."""


class EmptyClusterError(EmptyInputError):
    """A cluster lost all its members between two rounds."""

    def __init__(self, cluster_id):
        super().__init__(f"Cluster {cluster_id} has no members")
        self.cluster_id = cluster_id


class InvalidConfigError(KMeansError, ValueError):
    """Rejected configuration value; the previous value stays in effect."""


class EngineBusyError(KMeansError):
    """State change attempted while a run is in progress."""


# =============================================================================
# Data structures
# =============================================================================

@dataclass
class Point:
    id: str
    x: float
    y: float
    cluster_id: int = 0
    is_centroid: bool = False
    original_value: str | None = None   # categorical source text
    numeric_value: int | None = None    # encode_categorical(original_value)


# =============================================================================
# Geometry
# =============================================================================

def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def centroid(points: list[Point]) -> Point:
    """Mean position of ``points``.

    The result borrows the first member's ``cluster_id``; callers are expected
    to overwrite it with the id they actually want.
    """
    if len(points) == 0:
        raise EmptyInputError("Cannot calculate centroid of empty cluster")
    xy = np.array([(p.x, p.y) for p in points], dtype=float)
    mx, my = xy.mean(axis=0)
    cid = points[0].cluster_id
    return Point(f"centroid-{cid}", float(mx), float(my), cluster_id=cid, is_centroid=True)


def cluster_sse(points: list[Point], centre: Point) -> float:
    """Sum of squared errors for a cluster."""
    if len(points) == 0:
        return 0.0
    xy = np.array([(p.x, p.y) for p in points], dtype=float)
    return float(((xy - (centre.x, centre.y)) ** 2).sum())


def members_of(points: list[Point], cluster_id: int) -> list[Point]:
    return [p for p in points if p.cluster_id == cluster_id]


# =============================================================================
# Assignment
# =============================================================================

def nearest_cluster(point: Point, centroids: list[Point]) -> int:
    """``cluster_id`` of the closest centroid, or ``NO_CLUSTER`` if there are none.

    ``np.argmin`` returns the first minimum, so ties go to the centroid that
    comes first in ``centroids``.
    """
    if not centroids:
        return NO_CLUSTER
    dists = np.array([distance(point, c) for c in centroids])
    return centroids[int(np.argmin(dists))].cluster_id


def assign_all(points: list[Point], centroids: list[Point]) -> list[int]:
    """Nearest cluster id for every point. Points are left untouched."""
    return [nearest_cluster(p, centroids) for p in points]


# =============================================================================
# Dispersion split
# =============================================================================

def dispersion_split(points: list[Point], centroids: list[Point], threshold: float,
                     next_cluster_id: int) -> list[Point]:
    """Peel far-away members off each cluster into a cluster of their own.

    For every centroid in ``centroids`` (as it stood when the pass started), the
    members farther than ``threshold`` from it are moved to a new cluster whose
    centroid is their mean. New ids are handed out from ``next_cluster_id``
    upwards. ``points`` are relabelled in place and the new centroids are
    appended to ``centroids`` and also returned.
    """
    if threshold <= 0:
        raise InvalidConfigError(f"Dispersion threshold must be positive, got {threshold}")

    spawned = []
    new_id = next_cluster_id
    for c in list(centroids):
        distant = [p for p in members_of(points, c.cluster_id) if distance(p, c) > threshold]
        if not distant:
            continue
        new_c = centroid(distant)
        new_c.cluster_id = new_id
        new_c.id = f"centroid-{new_id}"
        for p in distant:
            p.cluster_id = new_id
        spawned.append(new_c)
        logger.info("Split %d distant point(s) off cluster %d into cluster %d",
                    len(distant), c.cluster_id, new_id)
        new_id += 1

    centroids.extend(spawned)
    return spawned


# =============================================================================
# Categorical encoding
# =============================================================================

def encode_categorical(text: str) -> int:
    """Sum of the character codes of ``text``.

    Deliberately naive: ``"ab"`` and ``"ba"`` encode to the same value and
    unrelated strings can collide. The number is only shown next to the point,
    it never takes part in clustering.
    """
    return sum(ord(ch) for ch in text)
