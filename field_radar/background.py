# =============================================================================
# Field Radar - Background Model and Depth Differencing
# =============================================================================
# Projects each point cloud into a zoomed depth image, keeps the farthest
# depth ever seen per pixel as background, and extracts the pixels that are
# reliably closer than that background over a short window of frames.
# =============================================================================

import logging
import numpy as np
from collections import deque
from typing import Optional

from .transforms import CoordinateTransformer

from .config import (
    LOCATOR_QUEUE_SIZE,
    LOCATOR_MIN_DEPTH_DIFF,
    LOCATOR_MAX_DEPTH_DIFF,
    LOCATOR_MAX_DISTANCE,
    LOCATOR_ZERO_EPSILON
)

logger = logging.getLogger(__name__)


class BackgroundModel:
    """
    Rolling depth background plus foreground differencing.

    Buffers (all zoomed image size, float, zero = no data):
    - depth_image: depth of the latest frame
    - background_image: per-pixel maximum depth ever observed
    - diff_image: foreground depth over the queued frames

    Pixel writes are vectorized. Where several points of one cloud land on
    the same pixel, whichever value numpy stores last survives; any of them
    is acceptable.
    """

    def __init__(self, transformer: CoordinateTransformer,
                 width: int, height: int,
                 queue_size: int = LOCATOR_QUEUE_SIZE,
                 min_depth_diff: float = LOCATOR_MIN_DEPTH_DIFF,
                 max_depth_diff: float = LOCATOR_MAX_DEPTH_DIFF,
                 max_distance: float = LOCATOR_MAX_DISTANCE):
        """
        Args:
            transformer: Frame conversions
            width: Zoomed image width
            height: Zoomed image height
            queue_size: Number of recent depth frames kept
            min_depth_diff: Lower bound of background - depth (meters)
            max_depth_diff: Upper bound of background - depth (meters)
            max_distance: Maximum sensor range (meters)
        """
        self.transformer = transformer
        self.width = width
        self.height = height
        self.min_depth_diff = min_depth_diff
        self.max_depth_diff = max_depth_diff
        self.max_distance = max_distance

        self.depth_image = np.zeros((height, width), dtype=np.float32)
        self.background_image = np.zeros((height, width), dtype=np.float32)
        self.diff_image = np.zeros((height, width), dtype=np.float32)
        self.depth_images = deque(maxlen=queue_size)

        self.frame_count = 0

    def update(self, cloud: Optional[np.ndarray]) -> bool:
        """
        Feed a new point cloud.

        Args:
            cloud: (N, 3) points in sensor frame, or None

        Returns:
            True if the frame was processed, False if it was skipped
        """
        if cloud is None:
            logger.warning("cloud is null, frame skipped")
            return False

        cloud = np.asarray(cloud, dtype=np.float64)
        if cloud.size == 0:
            logger.warning("cloud is empty, frame skipped")
            return False
        if cloud.ndim != 2 or cloud.shape[1] != 3:
            raise ValueError(f"cloud must have shape (N, 3), got {cloud.shape}")

        self._project(cloud)

        # deque(maxlen) evicts the oldest frame
        self.depth_images.append(self.depth_image.copy())
        self._difference()

        self.frame_count += 1
        return True

    def _project(self, cloud: np.ndarray):
        """Write the cloud into depth_image and raise the background."""
        self.depth_image.fill(0)

        degenerate = np.all(np.abs(cloud) < LOCATOR_ZERO_EPSILON, axis=1)
        in_range = np.linalg.norm(cloud, axis=1) <= self.max_distance
        points = cloud[~degenerate & in_range]
        if len(points) == 0:
            logger.debug("no valid points in cloud")
            return

        uvd = self.transformer.sensor_to_camera(points)
        u, v, d = uvd[:, 0], uvd[:, 1], uvd[:, 2]
        inside = ((d > 0) & np.isfinite(u) & np.isfinite(v) &
                  (u >= 0) & (u < self.width) & (v >= 0) & (v < self.height))
        cols = u[inside].astype(np.int64)
        rows = v[inside].astype(np.int64)
        depths = d[inside].astype(np.float32)

        np.maximum.at(self.background_image, (rows, cols), depths)
        self.depth_image[rows, cols] = depths

        logger.debug("projected %d of %d points", len(depths), len(cloud))

    def _difference(self):
        """Rebuild diff_image from the queued frames, oldest first."""
        self.diff_image.fill(0)
        for image in self.depth_images:
            diff = self.background_image - image
            mask = ((image != 0) &
                    (diff >= self.min_depth_diff) &
                    (diff <= self.max_depth_diff))
            self.diff_image[mask] = image[mask]

    def reset(self):
        """Forget background and queued frames."""
        self.depth_image.fill(0)
        self.background_image.fill(0)
        self.diff_image.fill(0)
        self.depth_images.clear()
        self.frame_count = 0
