# =============================================================================
# Field Radar - Track
# =============================================================================
# Filtered kinematic state, appearance summary and lifecycle of one robot.
# =============================================================================

import logging
import numpy as np
from typing import Optional

from .types import TrackState
from .config import TrackerConfig
from .kalman import SingerKalmanFilter

logger = logging.getLogger(__name__)


class Track:
    """
    A persistent robot identity.

    Lifecycle:
        TENTATIVE --(hits >= init_thresh)--> CONFIRMED
        TENTATIVE --(any miss)-------------> DELETED
        CONFIRMED --(miss_thresh consecutive misses)--> DELETED
    DELETED is terminal.

    The appearance accumulator is the running sum of the class-confidence
    vectors seen so far; its normalization is the class distribution.
    """

    def __init__(self, location: np.ndarray, feature: np.ndarray,
                 timestamp: float, track_id: int, config: TrackerConfig):
        """
        Create a tentative track from a first observation.

        Args:
            location: Observed position in world frame
            feature: Observed class-confidence vector
            timestamp: Observation time (s)
            track_id: Unique id
            config: Tracker configuration
        """
        self.track_id = track_id
        self.config = config
        self.timestamp = timestamp

        self.kf = SingerKalmanFilter(
            location,
            observation_noise=config.observation_noise,
            max_acceleration=config.max_acceleration,
            tau=config.acceleration_correlation_time,
            initial_velocity_std=config.initial_velocity_std
        )

        self.evidence = np.zeros(config.class_num)
        self._accumulate(feature)

        self.state = TrackState.TENTATIVE
        self.hits = 1
        self.age = 1
        self.time_since_update = 0
        self.miss_count = 0

        if self.hits >= config.init_thresh:
            self.state = TrackState.CONFIRMED

    def predict(self, timestamp: float):
        """
        Propagate the filter to a new time.

        Args:
            timestamp: Current time (s)
        """
        self.kf.predict(timestamp - self.timestamp)
        self.timestamp = max(timestamp, self.timestamp)
        self.age += 1
        self.time_since_update += 1

    def update(self, location: np.ndarray, feature: np.ndarray):
        """
        Correct the track with a located observation.

        Args:
            location: Observed position in world frame
            feature: Observed class-confidence vector
        """
        self.kf.update(location)
        self._accumulate(feature)

        self.hits += 1
        self.time_since_update = 0
        self.miss_count = 0
        if self.state == TrackState.TENTATIVE and self.hits >= self.config.init_thresh:
            self.state = TrackState.CONFIRMED
            logger.info("track %d confirmed", self.track_id)

    def mark_missed(self):
        """Record a cycle without a matching observation."""
        if self.state == TrackState.TENTATIVE:
            self.state = TrackState.DELETED
        elif self.state == TrackState.CONFIRMED:
            self.miss_count += 1
            if self.miss_count >= self.config.miss_thresh:
                self.state = TrackState.DELETED
                logger.info("track %d deleted after %d misses",
                            self.track_id, self.miss_count)

    def _accumulate(self, feature: np.ndarray):
        feature = np.asarray(feature, dtype=np.float64)
        total = feature.sum()
        if total > 0:
            self.evidence += feature / total

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def feature(self) -> np.ndarray:
        """Class distribution (sums to 1, or all zeros without evidence)."""
        total = self.evidence.sum()
        if total <= 0:
            return np.zeros_like(self.evidence)
        return self.evidence / total

    @property
    def label(self) -> Optional[int]:
        """Most likely class, or None without evidence."""
        if self.evidence.sum() <= 0:
            return None
        return int(np.argmax(self.evidence))

    @property
    def location(self) -> np.ndarray:
        """Filtered position in world frame."""
        return self.kf.get_position()

    @property
    def velocity(self) -> np.ndarray:
        """Filtered velocity in world frame."""
        return self.kf.get_velocity()

    def is_tentative(self) -> bool:
        return self.state == TrackState.TENTATIVE

    def is_confirmed(self) -> bool:
        return self.state == TrackState.CONFIRMED

    def is_deleted(self) -> bool:
        return self.state == TrackState.DELETED

    def __repr__(self) -> str:
        x, y, z = self.location
        return (f"Track(id={self.track_id}, state={self.state.value}, "
                f"label={self.label}, location=[{x:.3f}, {y:.3f}, {z:.3f}], "
                f"hits={self.hits}, misses={self.miss_count})")
