"""Pytest configuration and fixtures for field_radar tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add repository root to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))

from field_radar import CoordinateTransformer, Detection, LocatorConfig  # noqa: E402


# Original image 64x48, zoomed to 32x24
IMAGE_WIDTH = 64
IMAGE_HEIGHT = 48
ZOOM_FACTOR = 0.5

# Depths used by the synthetic scene (meters)
WALL_DEPTH = 10.0
BLOB_DEPTH = 7.0

# Zoomed pixel region of the 10x5 (50 pixel) blob
BLOB_COLS = slice(10, 20)
BLOB_ROWS = slice(8, 13)

# Original-image box that zooms exactly onto the blob
BLOB_BOX = (20.0, 16.0, 20.0, 10.0)

# Sensor x forward, y left, z up -> camera x right, y down, z forward
SENSOR_TO_CAMERA = np.array([
    [0.0, -1.0, 0.0, 0.0],
    [0.0, 0.0, -1.0, 0.0],
    [1.0, 0.0, 0.0, 0.0],
    [0.0, 0.0, 0.0, 1.0],
])

# World = sensor frame shifted by (1, 2, 0.5)
WORLD_TO_SENSOR = np.array([
    [1.0, 0.0, 0.0, -1.0],
    [0.0, 1.0, 0.0, -2.0],
    [0.0, 0.0, 1.0, -0.5],
    [0.0, 0.0, 0.0, 1.0],
])
SENSOR_ORIGIN_IN_WORLD = np.array([1.0, 2.0, 0.5])

INTRINSIC = np.array([
    [100.0, 0.0, 32.0],
    [0.0, 100.0, 24.0],
    [0.0, 0.0, 1.0],
])


def make_locator_config(**overrides) -> LocatorConfig:
    """LocatorConfig for the synthetic 64x48 camera."""
    params = dict(
        image_width=IMAGE_WIDTH,
        image_height=IMAGE_HEIGHT,
        intrinsic=INTRINSIC,
        sensor_to_camera=SENSOR_TO_CAMERA,
        world_to_camera=SENSOR_TO_CAMERA @ WORLD_TO_SENSOR,
        zoom_factor=ZOOM_FACTOR,
        queue_size=3,
        min_depth_diff=0.5,
        max_depth_diff=4.0,
        cluster_tolerance=0.2,
        min_cluster_size=10,
        max_cluster_size=5000,
        max_distance=29.3,
    )
    params.update(overrides)
    return LocatorConfig(**params)


@pytest.fixture
def locator_config():
    """Default synthetic camera configuration."""
    return make_locator_config()


@pytest.fixture
def transformer(locator_config):
    """Transformer of the synthetic camera."""
    return CoordinateTransformer(
        locator_config.intrinsic,
        locator_config.sensor_to_camera,
        locator_config.world_to_camera,
        locator_config.zoom_factor,
    )


@pytest.fixture
def cloud_from_depth(transformer):
    """
    Build a sensor-frame cloud from a zoomed depth image.

    Every nonzero pixel becomes one point back-projected through the pixel
    center, so it projects back onto exactly that pixel.
    """
    def _build(depth: np.ndarray) -> np.ndarray:
        rows, cols = np.nonzero(depth)
        uvd = np.column_stack([cols + 0.5, rows + 0.5, depth[rows, cols]])
        return transformer.camera_to_sensor(uvd)
    return _build


@pytest.fixture
def wall_depth():
    """Zoomed depth image of an empty scene (wall everywhere)."""
    return np.full((IMAGE_HEIGHT // 2, IMAGE_WIDTH // 2), WALL_DEPTH)


@pytest.fixture
def blob_depth(wall_depth):
    """Zoomed depth image with a 50 pixel robot in front of the wall."""
    depth = wall_depth.copy()
    depth[BLOB_ROWS, BLOB_COLS] = BLOB_DEPTH
    return depth


@pytest.fixture
def robot_detection():
    """Robot box around the blob with one armor of class 1."""
    car = Detection(*BLOB_BOX, label=0, confidence=0.9)
    armor = Detection(2.0, 2.0, 4.0, 3.0, label=1, confidence=0.8)
    return car, [armor]
