import pytest

from kmeans_core import (
    EmptyClusterError,
    EmptyInputError,
    InvalidConfigError,
    NO_CLUSTER,
    Point,
    assign_all,
    centroid,
    cluster_sse,
    dispersion_split,
    distance,
    encode_categorical,
    nearest_cluster,
)


def pt(x, y, cid=0):
    return Point(f"p-{x}-{y}", x, y, cluster_id=cid)


def ctr(x, y, cid):
    return Point(f"centroid-{cid}", x, y, cluster_id=cid, is_centroid=True)


# --- geometry ----------------------------------------------------------------

def test_distance_is_euclidean_and_symmetric():
    a, b = pt(0, 0), pt(3, 4)
    assert distance(a, b) == 5.0
    assert distance(b, a) == 5.0
    assert distance(a, pt(0, 0)) == 0.0


def test_centroid_of_single_point_is_that_point():
    c = centroid([pt(12.5, -3.25, cid=4)])
    assert (c.x, c.y) == (12.5, -3.25)
    assert c.is_centroid
    assert c.cluster_id == 4


def test_centroid_is_mean_and_borrows_first_cluster_id():
    c = centroid([pt(0, 0, cid=2), pt(4, 0, cid=7), pt(2, 6, cid=7)])
    assert c.x == pytest.approx(2.0)
    assert c.y == pytest.approx(2.0)
    assert c.cluster_id == 2


def test_centroid_of_nothing_raises():
    with pytest.raises(EmptyInputError):
        centroid([])


def test_empty_cluster_error_is_an_empty_input_error():
    err = EmptyClusterError(3)
    assert isinstance(err, EmptyInputError)
    assert isinstance(err, ValueError)
    assert err.cluster_id == 3


def test_cluster_sse():
    assert cluster_sse([pt(0, 0), pt(2, 0)], ctr(1, 0, 0)) == pytest.approx(2.0)
    assert cluster_sse([], ctr(1, 0, 0)) == 0.0


# --- assignment --------------------------------------------------------------

def test_nearest_cluster_without_centroids_is_unassigned():
    assert nearest_cluster(pt(1, 1), []) == NO_CLUSTER


def test_nearest_cluster_returns_cluster_id_not_index():
    centroids = [ctr(100, 100, 5), ctr(1, 1, 9)]
    assert nearest_cluster(pt(0, 0), centroids) == 9


def test_nearest_cluster_tie_goes_to_first_in_list():
    centroids = [ctr(1, 0, 5), ctr(-1, 0, 3)]
    assert nearest_cluster(pt(0, 0), centroids) == 5
    assert nearest_cluster(pt(0, 0), centroids[::-1]) == 3


def test_assign_all_leaves_points_untouched():
    points = [pt(0, 0, cid=7), pt(10, 0, cid=7)]
    labels = assign_all(points, [ctr(0, 0, 0), ctr(10, 0, 1)])
    assert labels == [0, 1]
    assert [p.cluster_id for p in points] == [7, 7]


# --- dispersion split --------------------------------------------------------

def test_split_does_nothing_when_everyone_is_close():
    points = [pt(0, 0), pt(10, 0), pt(0, 10)]
    centroids = [ctr(3, 3, 0)]
    assert dispersion_split(points, centroids, 50, next_cluster_id=1) == []
    assert len(centroids) == 1
    assert all(p.cluster_id == 0 for p in points)


def test_single_distant_member_becomes_its_own_cluster():
    far = pt(200, 0)
    points = [pt(0, 0), pt(5, 0), far]
    centroids = [ctr(0, 0, 0)]

    spawned = dispersion_split(points, centroids, 100, next_cluster_id=1)

    assert len(spawned) == 1
    new = spawned[0]
    assert (new.x, new.y) == (200, 0)
    assert new.cluster_id == 1
    assert new.is_centroid
    assert centroids[-1] is new
    assert far.cluster_id == 1
    assert [p.cluster_id for p in points[:2]] == [0, 0]


def test_split_ids_come_from_counter_not_list_length():
    points = [pt(0, 0, 0), pt(300, 0, 0), pt(1000, 0, 1), pt(1000, 400, 1)]
    centroids = [ctr(0, 0, 0), ctr(1000, 0, 1)]

    spawned = dispersion_split(points, centroids, 100, next_cluster_id=7)

    assert [c.cluster_id for c in spawned] == [7, 8]
    assert points[1].cluster_id == 7
    assert points[3].cluster_id == 8


def test_new_clusters_are_not_split_again_in_the_same_pass():
    a, b = pt(200, 0), pt(600, 0)
    points = [pt(0, 0), a, b]
    centroids = [ctr(0, 0, 0)]

    # a and b are 200 away from their shared new centroid at (400, 0)
    spawned = dispersion_split(points, centroids, 100, next_cluster_id=1)

    assert len(spawned) == 1
    assert (spawned[0].x, spawned[0].y) == (400, 0)
    assert a.cluster_id == b.cluster_id == 1


@pytest.mark.parametrize("threshold", [0, -10])
def test_split_rejects_non_positive_threshold(threshold):
    with pytest.raises(InvalidConfigError):
        dispersion_split([pt(0, 0)], [ctr(0, 0, 0)], threshold, next_cluster_id=1)


# --- categorical encoding ----------------------------------------------------

def test_encode_categorical():
    assert encode_categorical("A") == 65
    assert encode_categorical("") == 0
    assert encode_categorical("hello") == 532


def test_encode_categorical_ignores_order():
    # known limitation of a plain character sum
    assert encode_categorical("ab") == encode_categorical("ba")
