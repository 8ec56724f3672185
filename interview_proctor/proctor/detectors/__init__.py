"""Detector modules for proctoring"""

from .gaze_tracker import GazeTracker
from .drowsiness_detector import DrowsinessDetector
from .object_detector import SuspiciousObjectDetector
from .audio_detector import NoiseDetector

__all__ = [
    "GazeTracker",
    "DrowsinessDetector",
    "SuspiciousObjectDetector",
    "NoiseDetector"
]
