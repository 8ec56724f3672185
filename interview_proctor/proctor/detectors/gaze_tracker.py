"""
Gaze Tracker - Tracks candidate presence and screen gaze from face estimates

Emits:
- MULTIPLE_FACES on every tick with more than one face
- NO_FACE while the face has been absent for more than 10 seconds
- LOOKING_AWAY while the gaze has been off-screen for more than 5 seconds

Absence and look-away events repeat on every tick while the condition
holds, carrying the growing duration.
"""

import time
import logging
from typing import Callable, List, Optional, Sequence

from ..events import Event, EventType
from ..signals import Face, NOSE_TIP, LEFT_EYE, RIGHT_EYE
from ..utils.geometry import is_point, round_half_up

logger = logging.getLogger(__name__)


class GazeTracker:
    """
    Presence and gaze state machine for a single session.

    Uses the nose tip keypoint's horizontal position relative to the
    frame centre as a cheap proxy for "looking at the screen".
    """

    NO_FACE_SECONDS = 10.0
    LOOK_AWAY_SECONDS = 5.0

    # Half-width of the centre band, as a fraction of frame width
    CENTER_TOLERANCE = 0.3

    DEFAULT_FRAME_WIDTH = 640

    def __init__(
        self,
        frame_width: float = DEFAULT_FRAME_WIDTH,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize gaze tracker.

        Args:
            frame_width: Capture width in pixels, used when a tick does not report one
            clock: Source of epoch seconds
        """
        self.frame_width = frame_width
        self._clock = clock

        started = clock()
        self.last_face_time = started
        self.last_looking_time = started
        self.last_face: Optional[Face] = None

    def track(
        self,
        faces: Sequence[Face],
        now: Optional[float] = None,
        frame_width: Optional[float] = None
    ) -> List[Event]:
        """
        Evaluate one tick of face estimates.

        Args:
            faces: Faces found in the current frame
            now: Tick time in epoch seconds
            frame_width: Width of the current frame, if known

        Returns:
            Events for this tick, MULTIPLE_FACES first
        """
        if now is None:
            now = self._clock()
        faces = list(faces or [])
        events: List[Event] = []

        if len(faces) > 1:
            events.append(Event.create(
                EventType.MULTIPLE_FACES,
                f"{len(faces)} faces detected in frame",
                now=now
            ))

        if not faces:
            no_face_duration = now - self.last_face_time
            if no_face_duration > self.NO_FACE_SECONDS:
                events.append(Event.create(
                    EventType.NO_FACE,
                    f"No face detected for {round_half_up(no_face_duration)} seconds",
                    now=now,
                    duration=no_face_duration
                ))
            return events

        self.last_face_time = now
        self.last_face = faces[0]

        if frame_width is None:
            frame_width = self.frame_width

        if self.is_looking_at_screen(faces[0], frame_width):
            self.last_looking_time = now
        else:
            look_away_duration = now - self.last_looking_time
            if look_away_duration > self.LOOK_AWAY_SECONDS:
                events.append(Event.create(
                    EventType.LOOKING_AWAY,
                    f"Looking away for {round_half_up(look_away_duration)} seconds",
                    now=now,
                    duration=look_away_duration
                ))

        return events

    def is_looking_at_screen(self, face: Optional[Face], frame_width: float) -> bool:
        """
        Check whether the face is roughly centred in the frame.

        Missing keypoints count as looking at the screen.
        """
        if face is None or not face.keypoints:
            return True

        nose = face.keypoint(NOSE_TIP)
        left_eye = face.keypoint(LEFT_EYE)
        right_eye = face.keypoint(RIGHT_EYE)

        if not (is_point(nose) and is_point(left_eye) and is_point(right_eye)):
            return True

        if not frame_width or frame_width <= 0:
            logger.debug(f"Unusable frame width {frame_width!r}, assuming on-screen gaze")
            return True

        center_x = frame_width / 2
        tolerance = frame_width * self.CENTER_TOLERANCE
        return abs(nose[0] - center_x) < tolerance

    def reset(self, now: Optional[float] = None):
        """Reset timers to `now`"""
        if now is None:
            now = self._clock()
        self.last_face_time = now
        self.last_looking_time = now
        self.last_face = None
