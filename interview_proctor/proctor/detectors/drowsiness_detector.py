"""
Drowsiness Detector - Detects prolonged eye closure and excessive blinking

Uses the Eye Aspect Ratio (EAR) of the tracked face. Closure length is
counted in frames; the blink-rate window is wall-clock.

- Closure of more than 30 frames -> DROWSINESS (high)
- Closure runs of 6-29 frames are blinks; more than 5 blinks inside
  the 10 second window -> DROWSINESS (medium)
"""

import time
import logging
from typing import Callable, Dict, Any, Optional

from ..events import Event, EventType, Severity
from ..signals import Face
from ..utils.geometry import average_ear

logger = logging.getLogger(__name__)


class DrowsinessDetector:
    """
    Two-signal debounced state machine over per-frame EAR.

    State:
        eye_closure_frames: consecutive frames under the EAR threshold
        blink_counter: blinks counted in the current window
        last_blink_time: start of the current blink window
    """

    EAR_THRESHOLD = 0.25

    # Frames of continuous closure before drowsiness fires
    DROWSINESS_THRESHOLD = 30

    # A closure run longer than this many frames counts as a blink
    MIN_BLINK_FRAMES = 5

    EXCESSIVE_BLINK_THRESHOLD = 5
    BLINK_WINDOW_SECONDS = 10.0

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

        self.eye_closure_frames = 0
        self.blink_counter = 0
        self.last_blink_time = clock()
        self.last_ear: Optional[float] = None

    def detect(self, face: Optional[Face], now: Optional[float] = None) -> Optional[Event]:
        """
        Process one frame of the tracked face.

        Args:
            face: Tracked face, or None when no face is present
            now: Frame time in epoch seconds

        Returns:
            A DROWSINESS event or None
        """
        if face is None:
            return None

        # Both lower lids are needed; a half-tracked face is skipped
        if not _has_lower_lid(face.left_eye) or not _has_lower_lid(face.right_eye):
            return None

        if now is None:
            now = self._clock()

        avg_ear = average_ear(face.left_eye, face.right_eye)
        self.last_ear = avg_ear

        if avg_ear < self.EAR_THRESHOLD:
            self.eye_closure_frames += 1

            if self.eye_closure_frames > self.DROWSINESS_THRESHOLD:
                self.eye_closure_frames = 0
                return Event.create(
                    EventType.DROWSINESS,
                    "Possible drowsiness detected - eyes closed for extended period",
                    now=now,
                    severity=Severity.HIGH
                )
            return None

        event = None

        if self.MIN_BLINK_FRAMES < self.eye_closure_frames < self.DROWSINESS_THRESHOLD:
            self.blink_counter += 1

            if now - self.last_blink_time < self.BLINK_WINDOW_SECONDS:
                if self.blink_counter > self.EXCESSIVE_BLINK_THRESHOLD:
                    self.blink_counter = 0
                    event = Event.create(
                        EventType.DROWSINESS,
                        "Excessive blinking detected - possible fatigue",
                        now=now,
                        severity=Severity.MEDIUM
                    )
            else:
                # Window elapsed: this blink opens a new one
                self.blink_counter = 1
                self.last_blink_time = now

        self.eye_closure_frames = 0
        return event

    def get_metrics(self) -> Dict[str, Any]:
        """Current detector state"""
        return {
            "eye_closure_frames": self.eye_closure_frames,
            "blink_counter": self.blink_counter,
            "last_ear": self.last_ear,
            "ear_threshold": self.EAR_THRESHOLD
        }

    def reset(self, now: Optional[float] = None):
        """Reset counters and restart the blink window"""
        self.eye_closure_frames = 0
        self.blink_counter = 0
        self.last_blink_time = self._clock() if now is None else now
        self.last_ear = None


def _has_lower_lid(eye) -> bool:
    return eye is not None and bool(eye.lower)
