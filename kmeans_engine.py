"""
Stateful K-Means engine behind the trainer.

Holds the points and centroids, seeds clusters, runs a fixed number of Lloyd
rounds and finishes with a dispersion split. The front-end never touches the
lists directly; it calls the methods below and redraws whatever comes back.

    EMPTY --initialize--> INITIALIZED --run--> RUNNING --done/stop--> INITIALIZED

``run_steps`` yields after every round so a GUI can pace the animation with
``after`` instead of sleeping; ``run`` just drains it.
"""

import enum
import itertools
import logging
from dataclasses import dataclass

import numpy as np

from kmeans_core import (
    EmptyClusterError,
    EngineBusyError,
    InsufficientDataError,
    InvalidConfigError,
    NO_CLUSTER,
    Point,
    assign_all,
    centroid,
    dispersion_split,
    encode_categorical,
    members_of,
    nearest_cluster,
)

logger = logging.getLogger(__name__)

# Cluster id given to points clicked in before any centroid exists
DEFAULT_CLUSTER_ID = 0


class EngineState(enum.Enum):
    EMPTY = "empty"
    INITIALIZED = "initialized"
    RUNNING = "running"


@dataclass
class KMeansConfig:
    num_clusters: int = 2
    rounds: int = 6
    dispersion_threshold: float = 150.0
    round_interval_ms: int = 500      # animation pacing, only the GUI reads it
    width: float = 800.0              # display area for categorical points
    height: float = 500.0

    def validate(self):
        if self.num_clusters < 1:
            raise InvalidConfigError(f"Cluster count must be at least 1, got {self.num_clusters}")
        if self.rounds < 1:
            raise InvalidConfigError(f"Round count must be at least 1, got {self.rounds}")
        if not self.dispersion_threshold > 0:
            raise InvalidConfigError(
                f"Dispersion threshold must be positive, got {self.dispersion_threshold}")
        if self.width <= 0 or self.height <= 0:
            raise InvalidConfigError(f"Display area must be positive, got {self.width}x{self.height}")
        return self


@dataclass
class RoundReport:
    round: int            # 1-based
    total_rounds: int
    moved: int            # points whose cluster changed this round
    empty_clusters: list[int]


class KMeansEngine:
    def __init__(self, config: KMeansConfig | None = None, rng: np.random.Generator | None = None):
        self.config = (config or KMeansConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng()

        self._points: list[Point] = []
        self._centroids: list[Point] = []
        self._state = EngineState.EMPTY
        self._next_cluster_id = 0
        self._stop_requested = False
        self._active_run = None
        self._point_ids = itertools.count()

    # ---------------------------------------------------------------- State
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def points(self) -> list[Point]:
        return list(self._points)

    @property
    def centroids(self) -> list[Point]:
        return list(self._centroids)

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    def _ensure_idle(self, action):
        if self.is_running:
            raise EngineBusyError(f"Cannot {action} while k-means is running")

    # ---------------------------------------------------------------- Config
    def set_dispersion_threshold(self, threshold: float) -> float:
        if not threshold > 0:
            raise InvalidConfigError(f"Dispersion threshold must be positive, got {threshold}")
        self.config.dispersion_threshold = float(threshold)
        return self.config.dispersion_threshold

    def set_num_clusters(self, k: int) -> int:
        if k < 1:
            raise InvalidConfigError(f"Cluster count must be at least 1, got {k}")
        self.config.num_clusters = int(k)
        return self.config.num_clusters

    # ---------------------------------------------------------------- Points
    def _new_point(self, x, y, **extra) -> Point:
        cid = nearest_cluster(Point("", x, y), self._centroids)
        if cid == NO_CLUSTER:
            cid = DEFAULT_CLUSTER_ID
        p = Point(f"point-{next(self._point_ids)}", float(x), float(y), cluster_id=cid, **extra)
        self._points.append(p)
        return p

    def add_point(self, x: float, y: float) -> Point:
        self._ensure_idle("add points")
        return self._new_point(x, y)

    def encode_categorical(self, text: str) -> int:
        return encode_categorical(text)

    def add_categorical_point(self, text: str) -> Point:
        """Drop ``text`` somewhere random in the display area.

        Where it lands has nothing to do with what it says; ``numeric_value``
        is carried along for display only.
        """
        self._ensure_idle("add points")
        x = self.rng.uniform(0, self.config.width)
        y = self.rng.uniform(0, self.config.height)
        p = self._new_point(x, y, original_value=text, numeric_value=encode_categorical(text))
        logger.debug("Categorical %r -> %d placed at (%.1f, %.1f)", text, p.numeric_value, p.x, p.y)
        return p

    def reset(self):
        self._ensure_idle("reset")
        self._points.clear()
        self._centroids.clear()
        self._next_cluster_id = 0
        self._point_ids = itertools.count()
        self._state = EngineState.EMPTY
        logger.info("Engine reset")

    # ---------------------------------------------------------------- Seeding
    def initialize(self, k: int | None = None) -> list[Point]:
        self._ensure_idle("initialise clusters")
        k = self.config.num_clusters if k is None else k
        if k < 1:
            raise InvalidConfigError(f"Cluster count must be at least 1, got {k}")
        if len(self._points) < k:
            raise InsufficientDataError(len(self._points), k)

        picks = self.rng.permutation(len(self._points))[:k]
        self._centroids = [
            Point(f"centroid-{i}", self._points[j].x, self._points[j].y, cluster_id=i, is_centroid=True)
            for i, j in enumerate(picks)
        ]
        self._next_cluster_id = k
        for p, cid in zip(self._points, assign_all(self._points, self._centroids)):
            p.cluster_id = cid

        self._state = EngineState.INITIALIZED
        logger.info("Initialised %d clusters from %d points", k, len(self._points))
        return self.centroids

    # ---------------------------------------------------------------- Rounds
    def _cluster_centroid(self, c: Point) -> Point:
        members = members_of(self._points, c.cluster_id)
        if not members:
            raise EmptyClusterError(c.cluster_id)
        new_c = centroid(members)
        new_c.cluster_id = c.cluster_id
        new_c.id = f"centroid-{c.cluster_id}"
        return new_c

    def _recompute(self, c: Point) -> Point:
        try:
            return self._cluster_centroid(c)
        except EmptyClusterError as err:
            logger.debug("%s, keeping its centroid at (%.1f, %.1f)", err, c.x, c.y)
            return Point(c.id, c.x, c.y, cluster_id=c.cluster_id, is_centroid=True)

    def _round(self, number) -> RoundReport:
        # both halves are computed before anything is written back
        new_centroids = [self._recompute(c) for c in self._centroids]
        labels = assign_all(self._points, new_centroids)
        empty = [c.cluster_id for c in self._centroids if not members_of(self._points, c.cluster_id)]

        moved = sum(1 for p, cid in zip(self._points, labels) if p.cluster_id != cid)
        self._centroids = new_centroids
        for p, cid in zip(self._points, labels):
            p.cluster_id = cid

        logger.debug("Round %d/%d: %d point(s) moved", number, self.config.rounds, moved)
        return RoundReport(number, self.config.rounds, moved, empty)

    def run_steps(self):
        """Start a run and return an iterator yielding one ``RoundReport`` per round.

        The engine is ``RUNNING`` from the moment this returns until the
        iterator is exhausted or :meth:`stop` is called. On an engine with no
        centroids yet this only seeds them and the iterator is empty.
        """
        self._ensure_idle("start another run")
        if self._state is EngineState.EMPTY:
            self.initialize()
            return iter(())

        self._state = EngineState.RUNNING
        self._stop_requested = False
        self._active_run = self._rounds(self.config.rounds)
        return self._active_run

    def _rounds(self, total):
        logger.info("Running %d rounds over %d points, %d clusters",
                    total, len(self._points), len(self._centroids))
        completed = 0
        try:
            for number in range(1, total + 1):
                if self._stop_requested:
                    break
                yield self._round(number)
                completed = number
        finally:
            self._state = EngineState.INITIALIZED
            self._active_run = None

        if completed < total or self._stop_requested:
            logger.info("Run stopped after %d of %d rounds", completed, total)
            return
        spawned = dispersion_split(self._points, self._centroids,
                                   self.config.dispersion_threshold, self._next_cluster_id)
        self._next_cluster_id += len(spawned)
        logger.info("Run finished: %d clusters (%d new from dispersion split)",
                    len(self._centroids), len(spawned))

    def run(self) -> tuple[list[Point], list[Point]]:
        for _ in self.run_steps():
            pass
        return self.points, self.centroids

    def stop(self):
        """Halt a run before its next round. Rounds already applied stay applied."""
        if not self.is_running:
            return
        self._stop_requested = True
        logger.info("Stop requested")
        run = self._active_run
        if run is not None and not run.gi_running:
            run.close()
            self._state = EngineState.INITIALIZED
            self._active_run = None
