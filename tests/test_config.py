"""Tests for configuration values."""

import dataclasses

import numpy as np
import pytest

from field_radar import TrackerConfig

from conftest import make_locator_config


class TestLocatorConfig:
    """Tests for LocatorConfig validation."""

    def test_zoomed_dimensions(self, locator_config):
        assert locator_config.zoomed_width == 32
        assert locator_config.zoomed_height == 24

    def test_matrices_are_read_only(self, locator_config):
        with pytest.raises(ValueError):
            locator_config.intrinsic[0, 0] = 1.0

    def test_fields_are_immutable(self, locator_config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            locator_config.zoom_factor = 1.0

    @pytest.mark.parametrize("overrides", [
        {"zoom_factor": 0.0},
        {"zoom_factor": 0.001},
        {"image_width": 0},
        {"queue_size": 0},
        {"min_depth_diff": 5.0, "max_depth_diff": 1.0},
        {"cluster_tolerance": 0.0},
        {"min_cluster_size": 100, "max_cluster_size": 10},
        {"max_distance": -1.0},
        {"search_workers": 0},
        {"intrinsic": np.eye(4)},
        {"sensor_to_camera": np.eye(3)},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            make_locator_config(**overrides)


class TestTrackerConfig:
    """Tests for TrackerConfig validation."""

    def test_defaults_are_valid(self):
        config = TrackerConfig()
        assert len(config.observation_noise) == 3
        assert config.init_thresh >= 1

    @pytest.mark.parametrize("overrides", [
        {"observation_noise": (0.1, 0.1)},
        {"observation_noise": (0.1, 0.0, 0.1)},
        {"class_num": 0},
        {"init_thresh": 0},
        {"miss_thresh": 0},
        {"acceleration_correlation_time": 0.0},
        {"distance_weight": -1.0},
        {"max_iter": 0},
        {"distance_thresh": 0.0},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            TrackerConfig(**overrides)
