# =============================================================================
# Field Radar - Locator
# =============================================================================
# Resolves 3D world locations of detected robots:
# - BackgroundModel: depth background and foreground differencing
# - ClusterEngine: spatial grouping of foreground points
# - RegionSearcher: dominant cluster inside a detection box
# =============================================================================

import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .types import Robot
from .config import LocatorConfig
from .transforms import CoordinateTransformer
from .background import BackgroundModel
from .cluster import ClusterEngine

logger = logging.getLogger(__name__)

# Bucket id of foreground pixels that belong to no cluster
UNCLUSTERED = -1


class RegionSearcher:
    """
    Finds the location of one robot from the current cluster state.

    Read-only over the diff image and the cluster indices, so several
    searches may run concurrently once clustering has finished.
    """

    def __init__(self, transformer: CoordinateTransformer,
                 background: BackgroundModel, clusters: ClusterEngine):
        self.transformer = transformer
        self.background = background
        self.clusters = clusters

    def locate(self, rect) -> Optional[np.ndarray]:
        """
        Location of the dominant cluster inside a box.

        Every foreground pixel in the box votes for its cluster, unclustered
        pixels for a bucket of their own. The bucket with the most pixels
        wins (ties go to the lowest bucket id) and its points are averaged.

        Args:
            rect: Box (x, y, w, h) in original image coordinates

        Returns:
            Location in world frame, or None if the box has no foreground
        """
        x, y, w, h = self.transformer.zoom_rect(rect, self.background.width,
                                                self.background.height)
        region = self.background.diff_image[y:y + h, x:x + w]
        rows, cols = np.nonzero(region)
        if len(rows) == 0:
            return None

        candidates = {}
        for v, u in zip(rows + y, cols + x):
            index = self.clusters.pixel_to_index[(int(u), int(v))]
            bucket = self.clusters.cluster_of(index, UNCLUSTERED)
            candidates.setdefault(bucket, []).append(index)

        best = max(sorted(candidates), key=lambda bucket: len(candidates[bucket]))
        center_sensor = self.clusters.cloud[candidates[best]].mean(axis=0)
        return self.transformer.sensor_to_world(center_sensor)

    def search(self, robot: Robot):
        """Set the location of a robot; no-op without a box or foreground."""
        if robot.rect is None:
            return
        location = self.locate(robot.rect)
        if location is not None:
            robot.location = location


class Locator:
    """
    Point-cloud localization engine.

    Per frame: update(cloud) once, then search(robots). Clustering runs
    lazily on the first search after an update and always completes before
    any region is searched.
    """

    def __init__(self, config: LocatorConfig):
        """
        Args:
            config: Immutable locator configuration
        """
        self.config = config
        self.transformer = CoordinateTransformer(
            config.intrinsic, config.sensor_to_camera,
            config.world_to_camera, config.zoom_factor
        )
        self.background = BackgroundModel(
            self.transformer,
            config.zoomed_width,
            config.zoomed_height,
            queue_size=config.queue_size,
            min_depth_diff=config.min_depth_diff,
            max_depth_diff=config.max_depth_diff,
            max_distance=config.max_distance
        )
        self.cluster_engine = ClusterEngine(
            self.transformer,
            tolerance=config.cluster_tolerance,
            min_size=config.min_cluster_size,
            max_size=config.max_cluster_size
        )
        self.searcher = RegionSearcher(self.transformer, self.background,
                                       self.cluster_engine)
        self._clustered = False

    def update(self, cloud: Optional[np.ndarray]) -> bool:
        """
        Feed a new point cloud.

        Args:
            cloud: (N, 3) points in sensor frame

        Returns:
            True if the frame was processed
        """
        processed = self.background.update(cloud)
        if processed:
            self._clustered = False
        return processed

    def cluster(self) -> List[np.ndarray]:
        """Rebuild clusters from the current diff image."""
        clusters = self.cluster_engine.rebuild(self.background.diff_image)
        self._clustered = True
        return clusters

    def search(self, robots: List[Robot]) -> List[Robot]:
        """
        Resolve the world location of each robot in place.

        Args:
            robots: Robots of the current frame

        Returns:
            The same list
        """
        if not self._clustered:
            self.cluster()

        workers = self.config.search_workers
        if workers > 1 and len(robots) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                list(executor.map(self.searcher.search, robots))
        else:
            for robot in robots:
                self.searcher.search(robot)

        logger.debug("located %d of %d robots",
                     sum(1 for r in robots if r.is_located()), len(robots))
        return robots

    # =========================================================================
    # Query Methods
    # =========================================================================

    @property
    def diff_image(self) -> np.ndarray:
        return self.background.diff_image

    @property
    def background_image(self) -> np.ndarray:
        return self.background.background_image

    @property
    def clusters(self) -> List[np.ndarray]:
        return self.cluster_engine.clusters

    def reset(self):
        """Forget background, frames and clusters."""
        self.background.reset()
        self.cluster_engine.rebuild(self.background.diff_image)
        self._clustered = True
