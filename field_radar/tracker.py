# =============================================================================
# Field Radar - Multi-Object Tracker
# =============================================================================
# Tracks multiple robots over time, integrating:
# - Singer Kalman filtering for state estimation
# - Distance + appearance cost matrix
# - Auction algorithm for data association
# - Tentative/Confirmed/Deleted lifecycle
# =============================================================================

import logging
import numpy as np
from typing import List, Optional, Sequence, Tuple

from .types import Detection, Robot, TrackState
from .config import LocatorConfig, TrackerConfig
from .track import Track
from .auction import AuctionSolver, NOT_MATCHED
from .locator import Locator
from .sink import RobotSink, records_from_robots

logger = logging.getLogger(__name__)


def distance_score(distance: float, threshold: float) -> float:
    """
    Score of a position distance.

    1.0 inside the threshold, linear decay to 0.5 at twice the threshold,
    exponential decay beyond.
    """
    if distance < threshold:
        return 1.0
    if distance < 2.0 * threshold:
        return -distance / (2.0 * threshold) + 1.5
    return 0.5 * np.exp(2.0 - distance / threshold)


def feature_score(feature_a: np.ndarray, feature_b: np.ndarray) -> float:
    """Cosine similarity rescaled from [-1, 1] to [0, 1]; 0.5 if either is zero."""
    norm = np.linalg.norm(feature_a) * np.linalg.norm(feature_b)
    if norm <= 0:
        return 0.5
    return (float(np.dot(feature_a, feature_b)) / norm + 1.0) / 2.0


class Tracker:
    """
    Multi-object tracker.

    Per update:
    1. Predicts all tracks to the current timestamp
    2. Builds the track x robot cost matrix
    3. Associates with the auction algorithm
    4. Updates matched tracks, misses unmatched ones, spawns new tracks
    5. Purges deleted tracks
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        """
        Args:
            config: Immutable tracker configuration
        """
        self.config = config or TrackerConfig()
        self.solver = AuctionSolver(self.config.max_iter)

        self.tracks: List[Track] = []
        self.next_id = 0

    def calculate_cost(self, track: Track, robot: Robot) -> float:
        """
        Matching benefit of a track and a robot observation.

        Args:
            track: Predicted track
            robot: Observation

        Returns:
            Weighted sum of distance and feature scores (0 without evidence)
        """
        if not robot.is_located() and not robot.is_detected():
            return 0.0

        if robot.is_located():
            distance = np.linalg.norm(np.asarray(robot.location) - track.location)
            d_score = distance_score(distance, self.config.distance_thresh)
        else:
            d_score = 0.0

        f_score = feature_score(robot.feature(self.config.class_num), track.feature)

        return self.config.distance_weight * d_score + self.config.feature_weight * f_score

    def cost_matrix(self, robots: Sequence[Robot]) -> np.ndarray:
        """Cost matrix of shape (tracks, robots)."""
        costs = np.zeros((len(self.tracks), len(robots)))
        for i, track in enumerate(self.tracks):
            for j, robot in enumerate(robots):
                costs[i, j] = self.calculate_cost(track, robot)
        return costs

    def update(self, robots: List[Robot], timestamp: float) -> List[Robot]:
        """
        Update tracks with the robot observations of a frame.

        Robots are updated in place with their track id, state and, where
        the track provides them, label and location.

        Args:
            robots: Observations of the current frame
            timestamp: Monotonic frame time (s)

        Returns:
            The same list
        """
        # Prediction step for all tracks
        for track in self.tracks:
            track.predict(timestamp)

        # Data association using the auction algorithm
        assignment = self.solver.solve(self.cost_matrix(robots))

        matched_robots = set()
        for track_idx, robot_idx in enumerate(assignment):
            track = self.tracks[track_idx]
            if robot_idx == NOT_MATCHED:
                track.mark_missed()
                continue

            robot = robots[robot_idx]
            if robot.is_located():
                track.update(robot.location, robot.feature(self.config.class_num))
            robot.set_track(track)
            matched_robots.add(int(robot_idx))

        # Initialize tracks from unmatched robots
        spawned = 0
        for j, robot in enumerate(robots):
            if j in matched_robots:
                continue
            # Ignore robots that are not detected or located
            if robot.is_detected() and robot.is_located():
                track = Track(robot.location, robot.feature(self.config.class_num),
                              timestamp, self.next_id, self.config)
                self.next_id += 1
                robot.set_track(track)
                self.tracks.append(track)
                spawned += 1

        # Remove deleted tracks
        before = len(self.tracks)
        self.tracks = [track for track in self.tracks if not track.is_deleted()]

        logger.debug("tracker: %d robots, %d matched, %d spawned, %d purged, %d active",
                     len(robots), len(matched_robots), spawned,
                     before - len(self.tracks), len(self.tracks))
        return robots

    # =========================================================================
    # Query Methods
    # =========================================================================

    def get_tracks(self) -> List[Track]:
        """Returns all active tracks."""
        return self.tracks

    def get_confirmed_tracks(self) -> List[Track]:
        """Returns only confirmed tracks."""
        return [track for track in self.tracks if track.is_confirmed()]

    def get_track_by_id(self, track_id: int) -> Optional[Track]:
        """Get a specific track by ID."""
        for track in self.tracks:
            if track.track_id == track_id:
                return track
        return None

    def reset(self):
        """Reset the tracker."""
        self.tracks = []
        self.next_id = 0


# =============================================================================
# Radar Station - Complete Frame Pipeline
# =============================================================================

class RadarStation:
    """
    Complete perception pipeline of the station.

    Integrates:
    - Point-cloud localization (background, clusters, region search)
    - Multi-object tracking
    - Optional output sink

    Provides the robot observations of each frame with world locations and
    track identities.
    """

    def __init__(self, locator_config: LocatorConfig,
                 tracker_config: Optional[TrackerConfig] = None,
                 sink: Optional[RobotSink] = None):
        """
        Args:
            locator_config: Localization configuration
            tracker_config: Tracking configuration
            sink: Receiver of position reports
        """
        self.locator = Locator(locator_config)
        self.tracker = Tracker(tracker_config)
        self.sink = sink
        self.frame_count = 0

    def process_frame(self, cloud: Optional[np.ndarray],
                      detections: Sequence[Tuple[Detection, Sequence[Detection]]],
                      timestamp: float) -> List[Robot]:
        """
        Process one frame.

        Args:
            cloud: (N, 3) point cloud in sensor frame
            detections: (robot detection, armor detections) per robot
            timestamp: Monotonic frame time (s)

        Returns:
            Robots with locations and track information
        """
        self.frame_count += 1
        robots = [Robot.from_detections(car, armors) for car, armors in detections]

        self.locator.update(cloud)
        self.locator.search(robots)
        self.tracker.update(robots, timestamp)

        if self.sink is not None:
            self.sink.send(records_from_robots(robots))
        return robots

    def get_tracks(self) -> List[Track]:
        """Get current tracks."""
        return self.tracker.get_tracks()

    def reset(self):
        """Reset tracker and localization state."""
        self.tracker.reset()
        self.locator.reset()
        self.frame_count = 0

    def get_statistics(self) -> dict:
        """Get tracking statistics."""
        tracks = self.tracker.get_tracks()
        return {
            "frame_count": self.frame_count,
            "total_tracks": len(tracks),
            "confirmed_count": len([t for t in tracks if t.state == TrackState.CONFIRMED]),
            "tentative_count": len([t for t in tracks if t.state == TrackState.TENTATIVE]),
            "cluster_count": len(self.locator.clusters),
            "foreground_pixels": int(np.count_nonzero(self.locator.diff_image)),
            "next_track_id": self.tracker.next_id
        }
