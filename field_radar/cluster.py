# =============================================================================
# Field Radar - Foreground Clustering
# =============================================================================
# Back-projects foreground pixels into the sensor frame and groups them into
# spatial clusters (Euclidean cluster extraction via DBSCAN).
# =============================================================================

import logging
import numpy as np
from typing import Dict, List, Tuple
from sklearn.cluster import DBSCAN

from .transforms import CoordinateTransformer

from .config import (
    CLUSTER_TOLERANCE,
    CLUSTER_MIN_SIZE,
    CLUSTER_MAX_SIZE
)

logger = logging.getLogger(__name__)


class ClusterEngine:
    """
    Groups foreground pixels into object candidates.

    After every rebuild:
    - cloud: (N, 3) foreground points in sensor frame
    - pixel_to_index: (u, v) -> row of cloud
    - clusters: list of index arrays, largest first
    - index_to_cluster: row of cloud -> cluster id (unclustered rows absent)

    These are only meaningful until the next rebuild.
    """

    def __init__(self, transformer: CoordinateTransformer,
                 tolerance: float = CLUSTER_TOLERANCE,
                 min_size: int = CLUSTER_MIN_SIZE,
                 max_size: int = CLUSTER_MAX_SIZE):
        """
        Args:
            transformer: Frame conversions
            tolerance: Neighbor radius (meters)
            min_size: Minimum points per cluster (inclusive)
            max_size: Maximum points per cluster (inclusive)
        """
        self.transformer = transformer
        self.tolerance = tolerance
        self.min_size = min_size
        self.max_size = max_size

        self.cloud = np.zeros((0, 3))
        self.pixel_to_index: Dict[Tuple[int, int], int] = {}
        self.clusters: List[np.ndarray] = []
        self.index_to_cluster: Dict[int, int] = {}

    def rebuild(self, diff_image: np.ndarray) -> List[np.ndarray]:
        """
        Rebuild the foreground cloud, clusters and lookup maps.

        Args:
            diff_image: Foreground depth image (zero = background)

        Returns:
            List of clusters (arrays of cloud indices)
        """
        self.pixel_to_index = {}
        self.index_to_cluster = {}
        self.clusters = []

        rows, cols = np.nonzero(diff_image)
        if len(rows) == 0:
            self.cloud = np.zeros((0, 3))
            return self.clusters

        uvd = np.column_stack([cols, rows, diff_image[rows, cols]])
        self.cloud = self.transformer.camera_to_sensor(uvd)
        self.pixel_to_index = {(int(u), int(v)): i for i, (u, v) in enumerate(zip(cols, rows))}

        self.clusters = self.extract(self.cloud)
        for cluster_id, indices in enumerate(self.clusters):
            for index in indices:
                self.index_to_cluster[int(index)] = cluster_id

        logger.debug("%d foreground points, %d clusters",
                     len(self.cloud), len(self.clusters))
        return self.clusters

    def extract(self, points: np.ndarray) -> List[np.ndarray]:
        """
        Euclidean cluster extraction.

        Points closer than the tolerance are chained into one group
        (DBSCAN with min_samples=1); groups outside the size bounds are
        dropped.

        Args:
            points: (N, 3) points

        Returns:
            Clusters sorted by size (descending), then by first index
        """
        if len(points) == 0:
            return []

        labels = DBSCAN(eps=self.tolerance, min_samples=1).fit(points).labels_

        clusters = []
        for label in np.unique(labels):
            indices = np.flatnonzero(labels == label)
            if self.min_size <= len(indices) <= self.max_size:
                clusters.append(indices)

        clusters.sort(key=lambda indices: (-len(indices), indices[0]))
        return clusters

    def cluster_of(self, index: int, default: int = -1) -> int:
        """Cluster id of a cloud index, or default if unclustered."""
        return self.index_to_cluster.get(index, default)
