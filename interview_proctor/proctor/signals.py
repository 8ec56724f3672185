"""
Perception signals consumed by the detectors.

These are the shapes the external face/object models are expected to
produce for each captured frame.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

Point = Sequence[float]

# Keypoint names used by the gaze check
NOSE_TIP = "noseTip"
LEFT_EYE = "leftEye"
RIGHT_EYE = "rightEye"


@dataclass
class EyeLandmarks:
    """Eyelid contours and iris points for one eye"""
    upper: List[Point] = field(default_factory=list)
    lower: List[Point] = field(default_factory=list)
    iris: List[Point] = field(default_factory=list)


@dataclass
class Face:
    """
    One face estimate.

    Attributes:
        keypoints: Named 2D keypoints, e.g. noseTip -> (x, y)
        left_eye: Left eye landmarks, None if the model gave none
        right_eye: Right eye landmarks, None if the model gave none
    """
    keypoints: Dict[str, Point] = field(default_factory=dict)
    left_eye: Optional[EyeLandmarks] = None
    right_eye: Optional[EyeLandmarks] = None

    def keypoint(self, name: str) -> Optional[Point]:
        return self.keypoints.get(name)


Prediction = Tuple[str, float]


@dataclass
class FrameTick:
    """Everything the perception layer produced for one captured frame"""
    faces: List[Face] = field(default_factory=list)
    predictions: List[Prediction] = field(default_factory=list)
    frame_width: Optional[float] = None
    timestamp: Optional[float] = None  # epoch seconds, defaults to now
