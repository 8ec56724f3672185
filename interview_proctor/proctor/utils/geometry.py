"""
Geometry helpers for landmark-based detectors.

All functions are total: malformed input yields a sentinel value
instead of raising.
"""

import math
import numbers
from typing import Optional, Sequence

from ..signals import EyeLandmarks, Point

# EAR reported when landmarks are missing, i.e. "eye open"
OPEN_EYE_EAR = 1.0


def is_point(point: Optional[Point]) -> bool:
    """True if `point` has at least two finite numeric coordinates"""
    if point is None:
        return False
    try:
        return len(point) >= 2 and all(
            isinstance(v, numbers.Real) and math.isfinite(v) for v in point[:2]
        )
    except TypeError:
        return False


def distance(p1: Optional[Point], p2: Optional[Point]) -> float:
    """Euclidean distance between two 2D points, 0.0 if either is malformed"""
    if not is_point(p1) or not is_point(p2):
        return 0.0
    return math.hypot(p1[0] - p2[0], p1[1] - p2[1])


def eye_aspect_ratio(upper: Sequence[Point], lower: Sequence[Point]) -> float:
    """
    Calculate Eye Aspect Ratio (EAR) from eyelid contours.

    EAR = (|U[1]-L[1]| + |U[2]-L[2]|) / (2 * |U[0]-U[-1]|)

    Args:
        upper: Upper eyelid points, outer corner first
        lower: Lower eyelid points

    Returns:
        EAR value, or OPEN_EYE_EAR when the contours are unusable
    """
    if not upper or not lower or len(upper) < 3 or len(lower) < 3:
        return OPEN_EYE_EAR

    v1 = distance(upper[1], lower[1])
    v2 = distance(upper[2], lower[2])
    h = distance(upper[0], upper[-1])

    if h == 0:
        return OPEN_EYE_EAR

    return (v1 + v2) / (2.0 * h)


def eye_landmarks_ear(eye: Optional[EyeLandmarks]) -> float:
    if eye is None:
        return OPEN_EYE_EAR
    return eye_aspect_ratio(eye.upper, eye.lower)


def average_ear(left: Optional[EyeLandmarks], right: Optional[EyeLandmarks]) -> float:
    """Mean EAR of both eyes"""
    return (eye_landmarks_ear(left) + eye_landmarks_ear(right)) / 2.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)"""
    return int(math.floor(value + 0.5))
