import pytest
from matplotlib.figure import Figure

from kmeans_core import Point
from kmeans_views import CLUSTER_PALETTE, blob_points, cluster_colour, draw_state, sse_rows


def test_cluster_colour_cycles():
    assert cluster_colour(0) == CLUSTER_PALETTE[0]
    assert cluster_colour(len(CLUSTER_PALETTE) + 2) == CLUSTER_PALETTE[2]


def test_blob_points_fit_the_canvas():
    coords = blob_points(90, 3, 0.6, 800, 500, pad=40, random_state=4)
    assert len(coords) == 90
    xs = [x for x, _ in coords]
    ys = [y for _, y in coords]
    assert min(xs) == pytest.approx(40) and max(xs) == pytest.approx(760)
    assert min(ys) == pytest.approx(40) and max(ys) == pytest.approx(460)


def test_sse_rows_largest_first():
    points = [
        Point("a", 0, 0, cluster_id=0), Point("b", 2, 0, cluster_id=0),
        Point("c", 10, 0, cluster_id=1), Point("d", 20, 0, cluster_id=1),
    ]
    centroids = [
        Point("centroid-0", 1, 0, cluster_id=0, is_centroid=True),
        Point("centroid-1", 15, 0, cluster_id=1, is_centroid=True),
        Point("centroid-2", 99, 99, cluster_id=2, is_centroid=True),
    ]
    assert sse_rows(points, centroids) == [(1, 50.0), (0, 2.0), (2, 0.0)]


def test_draw_state_plots_points_centroids_and_radii():
    ax = Figure().add_subplot(111)
    points = [Point("a", 10, 10, cluster_id=0), Point("b", 300, 200, cluster_id=1,
                                                      original_value="red", numeric_value=312)]
    centroids = [Point("centroid-0", 10, 10, cluster_id=0, is_centroid=True),
                 Point("centroid-1", 300, 200, cluster_id=1, is_centroid=True)]

    draw_state(ax, points, centroids, 800, 500, threshold=100)

    # one scatter for the data, one per centroid
    assert len(ax.collections) == 1 + len(centroids)
    assert len(ax.patches) == len(centroids)
    assert [t.get_text() for t in ax.texts] == ["red (312)"]
    assert ax.get_ylim() == (500, 0)
    assert ax.get_legend() is not None


def test_draw_state_without_data():
    ax = Figure().add_subplot(111)
    draw_state(ax, [], [], 800, 500, title="Empty")
    assert len(ax.collections) == 0
    assert ax.get_title() == "Empty"
    assert ax.get_legend() is None
