import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

from kmeans_engine import KMeansConfig, KMeansEngine  # noqa: E402


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def engine(rng):
    return KMeansEngine(KMeansConfig(), rng=rng)