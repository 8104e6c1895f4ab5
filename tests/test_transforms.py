"""Tests for frame conversions."""

import numpy as np
import pytest

from field_radar.transforms import CoordinateTransformer, invert_rigid_transform

from conftest import SENSOR_ORIGIN_IN_WORLD


class TestRigidTransform:
    """Tests for rigid transform inversion."""

    def test_inverse_composes_to_identity(self):
        """A rigid transform times its inverse is the identity."""
        theta = 0.3
        transform = np.array([
            [np.cos(theta), -np.sin(theta), 0.0, 1.5],
            [np.sin(theta), np.cos(theta), 0.0, -2.0],
            [0.0, 0.0, 1.0, 0.7],
            [0.0, 0.0, 0.0, 1.0],
        ])
        np.testing.assert_allclose(transform @ invert_rigid_transform(transform),
                                   np.eye(4), atol=1e-12)


class TestCoordinateTransformer:
    """Tests for CoordinateTransformer."""

    def test_round_trip_sensor_camera_sensor(self, transformer):
        """sensor -> camera -> sensor recovers the points."""
        rng = np.random.default_rng(0)
        points = np.column_stack([
            rng.uniform(1.0, 25.0, 200),
            rng.uniform(-3.0, 3.0, 200),
            rng.uniform(-3.0, 3.0, 200),
        ])
        uvd = transformer.sensor_to_camera(points)
        assert np.all(uvd[:, 2] > 0)
        np.testing.assert_allclose(transformer.camera_to_sensor(uvd), points, atol=1e-9)

    def test_single_point_keeps_shape(self, transformer):
        """A (3,) input yields a (3,) output."""
        point = np.array([5.0, 0.5, -0.2])
        assert transformer.sensor_to_camera(point).shape == (3,)
        assert transformer.sensor_to_world(point).shape == (3,)
        assert transformer.camera_to_sensor(np.array([3.0, 4.0, 5.0])).shape == (3,)

    def test_optical_axis_hits_zoomed_center(self, transformer):
        """A point straight ahead projects onto the zoomed principal point."""
        u, v, depth = transformer.sensor_to_camera(np.array([8.0, 0.0, 0.0]))
        assert u == pytest.approx(16.0)
        assert v == pytest.approx(12.0)
        assert depth == pytest.approx(8.0)

    def test_sensor_to_world(self, transformer):
        """World frame is the sensor frame shifted by the sensor origin."""
        point = np.array([4.0, -1.0, 0.25])
        np.testing.assert_allclose(transformer.sensor_to_world(point),
                                   point + SENSOR_ORIGIN_IN_WORLD, atol=1e-12)

    def test_zoom_factor_scales_pixels(self, locator_config):
        """Halving the zoom halves pixel coordinates and keeps depth."""
        full = CoordinateTransformer(locator_config.intrinsic, locator_config.sensor_to_camera,
                                     locator_config.world_to_camera, 1.0)
        half = CoordinateTransformer(locator_config.intrinsic, locator_config.sensor_to_camera,
                                     locator_config.world_to_camera, 0.5)
        point = np.array([6.0, 1.0, 0.5])
        np.testing.assert_allclose(half.sensor_to_camera(point)[:2],
                                   full.sensor_to_camera(point)[:2] * 0.5)
        assert half.sensor_to_camera(point)[2] == pytest.approx(6.0)


class TestZoomRect:
    """Tests for mapping detection boxes to zoomed coordinates."""

    def test_box_scaled_about_center(self, transformer):
        assert transformer.zoom_rect((20.0, 16.0, 20.0, 10.0), 32, 24) == (10, 8, 10, 5)

    def test_box_clipped_to_image(self, transformer):
        x, y, w, h = transformer.zoom_rect((50.0, 40.0, 30.0, 20.0), 32, 24)
        assert (x, y) == (25, 20)
        assert x + w == 32
        assert y + h == 24

    def test_box_outside_image_is_empty(self, transformer):
        _, _, w, h = transformer.zoom_rect((200.0, 200.0, 10.0, 10.0), 32, 24)
        assert w == 0 or h == 0
