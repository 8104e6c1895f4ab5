# =============================================================================
# Field Radar Package
# =============================================================================
# Robot localization and tracking for a stationary sensor station.
#
# Responsibilities:
# - Depth background modeling and foreground differencing
# - Foreground clustering and detection-box-to-cluster resolution
# - Multi-object tracking with Singer Kalman filters
# - Auction-based data association and track lifecycle
#
# Usage:
#   from field_radar import LocatorConfig, RadarStation
#   station = RadarStation(LocatorConfig(...))
#   robots = station.process_frame(cloud, detections, timestamp)
# =============================================================================

# Configuration
from .config import LocatorConfig, TrackerConfig

# Types
from .types import (
    TrackState,
    Detection,
    Robot
)

# Core components
from .transforms import CoordinateTransformer
from .background import BackgroundModel
from .cluster import ClusterEngine
from .locator import RegionSearcher, Locator
from .kalman import SingerKalmanFilter
from .track import Track
from .auction import AuctionSolver, NOT_MATCHED
from .tracker import Tracker, RadarStation
from .sink import SinkRecord, RobotSink, MemorySink, LoggingSink, records_from_robots

__all__ = [
    # Configuration
    'LocatorConfig',
    'TrackerConfig',

    # Types
    'TrackState',
    'Detection',
    'Robot',

    # Localization
    'CoordinateTransformer',
    'BackgroundModel',
    'ClusterEngine',
    'RegionSearcher',
    'Locator',

    # Tracking
    'SingerKalmanFilter',
    'Track',
    'AuctionSolver',
    'NOT_MATCHED',
    'Tracker',

    # Output
    'SinkRecord',
    'RobotSink',
    'MemorySink',
    'LoggingSink',
    'records_from_robots',

    # Complete pipeline
    'RadarStation',
]

__version__ = '1.0.0'
