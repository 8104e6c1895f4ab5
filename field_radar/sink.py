# =============================================================================
# Field Radar - Output Sink
# =============================================================================
# Hand-off point to the external communication component that transmits
# resolved robot positions.
# =============================================================================

import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .types import Robot

logger = logging.getLogger(__name__)


@dataclass
class SinkRecord:
    """Position report of one tracked robot."""
    id: int
    label: Optional[int]
    location: np.ndarray  # World frame


def records_from_robots(robots: Sequence[Robot]) -> List[SinkRecord]:
    """
    Build sink records from the robots of a frame.

    Only robots with both a track id and a location are reported.
    """
    return [SinkRecord(id=robot.track_id, label=robot.label,
                       location=np.asarray(robot.location, dtype=np.float64))
            for robot in robots
            if robot.track_id is not None and robot.location is not None]


class RobotSink(ABC):
    """Receiver of per-frame position reports."""

    @abstractmethod
    def send(self, records: List[SinkRecord]):
        """
        Deliver the reports of one frame.

        Args:
            records: Position reports
        """


class MemorySink(RobotSink):
    """Keeps the reports in memory."""

    def __init__(self):
        self.records: List[SinkRecord] = []
        self.frames = 0

    def send(self, records: List[SinkRecord]):
        self.records = list(records)
        self.frames += 1


class LoggingSink(RobotSink):
    """Writes the reports to the log."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def send(self, records: List[SinkRecord]):
        for record in records:
            x, y, z = record.location
            logger.log(self.level, "robot %d label=%s location=[%.3f, %.3f, %.3f]",
                       record.id, record.label, x, y, z)
