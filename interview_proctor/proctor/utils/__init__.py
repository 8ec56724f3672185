"""Utility modules"""

from .geometry import distance, eye_aspect_ratio, average_ear
from .logging import log_proctor_event

__all__ = ["distance", "eye_aspect_ratio", "average_ear", "log_proctor_event"]
