# =============================================================================
# Field Radar - Configuration
# =============================================================================
# All configurable parameters for localization and tracking.
# Constants are the defaults; LocatorConfig / TrackerConfig are the immutable
# values actually handed to the components at construction.
# =============================================================================

import numpy as np
from dataclasses import dataclass
from typing import Tuple

# =============================================================================
# IMAGE / PROJECTION CONFIGURATION
# =============================================================================
# Zoom factor applied to the working image resolution.
# 0.5 = depth images are half the width and height of the camera image.
LOCATOR_ZOOM_FACTOR = 0.5

# =============================================================================
# BACKGROUND / DIFFERENCING CONFIGURATION
# =============================================================================
# Number of recent depth frames folded into the diff image
LOCATOR_QUEUE_SIZE = 3

# Band of (background - depth) kept as foreground (meters)
LOCATOR_MIN_DEPTH_DIFF = 0.5
LOCATOR_MAX_DEPTH_DIFF = 4.0

# Points farther than this from the sensor are ignored (meters)
LOCATOR_MAX_DISTANCE = 29.3

# Points with all coordinates below this magnitude are degenerate
LOCATOR_ZERO_EPSILON = 1e-6

# =============================================================================
# CLUSTERING CONFIGURATION
# =============================================================================
# Neighbor radius for Euclidean cluster extraction (meters)
CLUSTER_TOLERANCE = 0.2

# Inclusive bounds on cluster size (points)
CLUSTER_MIN_SIZE = 10
CLUSTER_MAX_SIZE = 5000

# Threads used for per-object region search (1 = sequential)
SEARCH_WORKERS = 1

# =============================================================================
# TRACK / KALMAN CONFIGURATION
# =============================================================================
# Observation noise std per axis (meters)
TRACK_OBSERVATION_NOISE = (0.2, 0.2, 0.1)

# Singer model: maximum acceleration (m/s^2) and its correlation time (s)
TRACK_MAX_ACCELERATION = 8.0
TRACK_ACCELERATION_CORRELATION_TIME = 1.0

# Initial velocity uncertainty of a fresh track (m/s)
TRACK_INITIAL_VELOCITY_STD = 2.0

# =============================================================================
# TRACKER CONFIGURATION
# =============================================================================
# Number of appearance classes
TRACKER_CLASS_NUM = 12

# Hits needed to confirm a tentative track
TRACKER_INIT_THRESH = 3

# Consecutive misses needed to delete a confirmed track
TRACKER_MISS_THRESH = 10

# Cost weights
TRACKER_DISTANCE_WEIGHT = 0.6
TRACKER_FEATURE_WEIGHT = 0.4

# Maximum bidding rounds of the auction solver
TRACKER_MAX_ITER = 100

# Distance threshold for scoring (meters)
TRACKER_DISTANCE_THRESH = 0.8


def _frozen_matrix(value, shape: Tuple[int, int], name: str) -> np.ndarray:
    matrix = np.array(value, dtype=np.float64)
    if matrix.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {matrix.shape}")
    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True)
class LocatorConfig:
    """
    Immutable configuration of the point-cloud localization engine.

    Matrices are stored as read-only float arrays.
    """
    image_width: int
    image_height: int
    intrinsic: np.ndarray
    sensor_to_camera: np.ndarray
    world_to_camera: np.ndarray
    zoom_factor: float = LOCATOR_ZOOM_FACTOR
    queue_size: int = LOCATOR_QUEUE_SIZE
    min_depth_diff: float = LOCATOR_MIN_DEPTH_DIFF
    max_depth_diff: float = LOCATOR_MAX_DEPTH_DIFF
    cluster_tolerance: float = CLUSTER_TOLERANCE
    min_cluster_size: int = CLUSTER_MIN_SIZE
    max_cluster_size: int = CLUSTER_MAX_SIZE
    max_distance: float = LOCATOR_MAX_DISTANCE
    search_workers: int = SEARCH_WORKERS

    def __post_init__(self):
        # Frozen dataclass: normalized fields go through object.__setattr__
        object.__setattr__(self, 'intrinsic',
                           _frozen_matrix(self.intrinsic, (3, 3), 'intrinsic'))
        object.__setattr__(self, 'sensor_to_camera',
                           _frozen_matrix(self.sensor_to_camera, (4, 4), 'sensor_to_camera'))
        object.__setattr__(self, 'world_to_camera',
                           _frozen_matrix(self.world_to_camera, (4, 4), 'world_to_camera'))

        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError("image_width and image_height must be positive")
        if self.zoom_factor <= 0:
            raise ValueError("zoom_factor must be positive")
        if self.zoomed_width == 0 or self.zoomed_height == 0:
            raise ValueError("zoom_factor shrinks the image to nothing")
        if self.queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        if self.min_depth_diff > self.max_depth_diff:
            raise ValueError("min_depth_diff must not exceed max_depth_diff")
        if self.cluster_tolerance <= 0:
            raise ValueError("cluster_tolerance must be positive")
        if self.min_cluster_size < 1 or self.min_cluster_size > self.max_cluster_size:
            raise ValueError("cluster size bounds must satisfy 1 <= min <= max")
        if self.max_distance <= 0:
            raise ValueError("max_distance must be positive")
        if self.search_workers < 1:
            raise ValueError("search_workers must be at least 1")

    @property
    def zoomed_width(self) -> int:
        return int(self.image_width * self.zoom_factor)

    @property
    def zoomed_height(self) -> int:
        return int(self.image_height * self.zoom_factor)


@dataclass(frozen=True)
class TrackerConfig:
    """Immutable configuration of the multi-object tracker."""
    observation_noise: Tuple[float, float, float] = TRACK_OBSERVATION_NOISE
    class_num: int = TRACKER_CLASS_NUM
    init_thresh: int = TRACKER_INIT_THRESH
    miss_thresh: int = TRACKER_MISS_THRESH
    max_acceleration: float = TRACK_MAX_ACCELERATION
    acceleration_correlation_time: float = TRACK_ACCELERATION_CORRELATION_TIME
    initial_velocity_std: float = TRACK_INITIAL_VELOCITY_STD
    distance_weight: float = TRACKER_DISTANCE_WEIGHT
    feature_weight: float = TRACKER_FEATURE_WEIGHT
    max_iter: int = TRACKER_MAX_ITER
    distance_thresh: float = TRACKER_DISTANCE_THRESH

    def __post_init__(self):
        noise = tuple(float(n) for n in self.observation_noise)
        if len(noise) != 3 or min(noise) <= 0:
            raise ValueError("observation_noise must be three positive values")
        object.__setattr__(self, 'observation_noise', noise)

        if self.class_num < 1:
            raise ValueError("class_num must be at least 1")
        if self.init_thresh < 1 or self.miss_thresh < 1:
            raise ValueError("init_thresh and miss_thresh must be at least 1")
        if self.max_acceleration < 0:
            raise ValueError("max_acceleration must not be negative")
        if self.acceleration_correlation_time <= 0:
            raise ValueError("acceleration_correlation_time must be positive")
        if self.initial_velocity_std < 0:
            raise ValueError("initial_velocity_std must not be negative")
        if self.distance_weight < 0 or self.feature_weight < 0:
            raise ValueError("cost weights must not be negative")
        if self.max_iter < 1:
            raise ValueError("max_iter must be at least 1")
        if self.distance_thresh <= 0:
            raise ValueError("distance_thresh must be positive")
