# =============================================================================
# Field Radar - Types and Data Structures
# =============================================================================
# Detections coming from the vision detector and the per-frame robot
# observations built from them.
# =============================================================================

import logging
import numpy as np
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple
from enum import Enum

logger = logging.getLogger(__name__)


# =============================================================================
# Enumerations
# =============================================================================

class TrackState(Enum):
    """Track lifecycle state."""
    TENTATIVE = "TENTATIVE"
    CONFIRMED = "CONFIRMED"
    DELETED = "DELETED"


# =============================================================================
# Detector Output
# =============================================================================

@dataclass
class Detection:
    """Single box from the vision detector (original image coordinates)."""
    x: float           # Left edge (pixels)
    y: float           # Top edge (pixels)
    width: float       # Box width (pixels)
    height: float      # Box height (pixels)
    label: int         # Class id
    confidence: float  # Detector score


# =============================================================================
# Robot Observation
# =============================================================================

@dataclass
class Robot:
    """
    Observation of one physical robot in the current frame.

    Built fresh every frame from a whole-robot detection and the
    sub-detections (armors) found inside it. The locator fills in
    `location` (world frame) and the tracker fills in the track fields.
    """
    rect: Optional[Tuple[float, float, float, float]] = None  # x, y, w, h
    label: Optional[int] = None
    confidence: Optional[float] = None
    armors: Optional[List[Detection]] = None
    location: Optional[np.ndarray] = None      # World frame
    track_id: Optional[int] = None
    track_state: Optional[TrackState] = None

    @classmethod
    def from_detections(cls, car: Detection,
                        armors: Sequence[Detection] = ()) -> 'Robot':
        """
        Aggregate a robot detection and its armor detections.

        Armor boxes are relative to the robot box and are shifted into image
        coordinates. The label is the one with the highest summed confidence;
        the confidence is that sum averaged over the armors carrying it.

        Args:
            car: Whole-robot detection
            armors: Armor detections inside the robot box

        Returns:
            New Robot observation (label/confidence unset without armors)
        """
        robot = cls(rect=(car.x, car.y, car.width, car.height))
        if not armors:
            return robot

        score_map = {}
        count_map = {}
        for armor in armors:
            score_map[armor.label] = score_map.get(armor.label, 0.0) + armor.confidence
            count_map[armor.label] = count_map.get(armor.label, 0) + 1

        # Ties resolve to the lowest label
        label = max(sorted(score_map), key=lambda key: score_map[key])
        robot.label = label
        robot.confidence = score_map[label] / count_map[label]
        robot.armors = [replace(armor, x=armor.x + car.x, y=armor.y + car.y)
                        for armor in armors]
        return robot

    def is_detected(self) -> bool:
        """True if the robot carries appearance evidence."""
        return bool(self.armors)

    def is_located(self) -> bool:
        """True if the robot has a world-frame location."""
        return self.location is not None

    def feature(self, class_num: int) -> np.ndarray:
        """
        Class-confidence vector of the robot.

        Args:
            class_num: Number of classes

        Returns:
            Vector summing to 1, or all zeros without evidence
        """
        feature = np.zeros(class_num)
        if not self.is_detected():
            return feature

        for armor in self.armors:
            label = int(armor.label)
            if not 0 <= label < class_num:
                logger.warning("armor label %d outside [0, %d), ignored", label, class_num)
                continue
            feature[label] += armor.confidence

        total = feature.sum()
        if np.isclose(total, 0.0):  # avoid division by zero
            return np.zeros(class_num)
        return feature / total

    def set_track(self, track) -> None:
        """
        Adopt the state of the track this robot was associated with.

        A confirmed track overrides label and location; a tentative track
        only fills them in where they are unset.
        """
        self.track_id = track.track_id
        self.track_state = track.state
        if track.is_confirmed():
            self.label = track.label
            self.location = track.location
        else:
            if self.label is None:
                self.label = track.label
            if self.location is None:
                self.location = track.location

    def __str__(self) -> str:
        rect = "None" if self.rect is None else "[{:.1f}, {:.1f}, {:.1f}, {:.1f}]".format(*self.rect)
        location = "None" if self.location is None else "[{:.3f}, {:.3f}, {:.3f}]".format(*self.location)
        state = "None" if self.track_state is None else self.track_state.value
        return (f"Robot: {{ Label: {self.label}, Rect: {rect}, "
                f"Confidence: {self.confidence}, State: {state}, Location: {location} }}")
