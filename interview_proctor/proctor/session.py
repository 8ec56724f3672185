"""
Proctor Session - Per-session detection context

Owns one instance of every detector so no detector state is ever
shared between candidates.
"""

import time
import logging
import threading
from typing import Callable, Dict, Any, List, Optional, Sequence

from .detectors import (
    GazeTracker,
    DrowsinessDetector,
    SuspiciousObjectDetector,
    NoiseDetector
)
from .events import Event
from .metrics import EventAggregator
from .metrics.aggregator import EventSink
from .signals import FrameTick

logger = logging.getLogger(__name__)


class ProctorSession:
    """
    Runs the detection pipeline for a single interview session.

    The video path (gaze, drowsiness, objects) and the audio path
    (noise) use disjoint detectors and only meet in the aggregator.
    """

    def __init__(
        self,
        session_id: str,
        sink: Optional[EventSink] = None,
        frame_width: float = GazeTracker.DEFAULT_FRAME_WIDTH,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize a detection context.

        Args:
            session_id: Ledger id of the session
            sink: Receives (session_id, events) for every emitted batch,
                normally SessionLedger.append_events
            frame_width: Default capture width for the gaze check
            clock: Source of epoch seconds
        """
        self.id = session_id
        self.is_active = True
        self._clock = clock

        self.gaze_tracker = GazeTracker(frame_width=frame_width, clock=clock)
        self.drowsiness_detector = DrowsinessDetector(clock=clock)
        self.object_detector = SuspiciousObjectDetector(clock=clock)
        self.noise_detector = NoiseDetector(clock=clock)

        self.aggregator = EventAggregator(session_id=session_id, sink=sink)

        self.frame_count = 0
        self.audio_block_count = 0

        # One frame and one audio block in flight at a time
        self._frame_lock = threading.Lock()
        self._audio_lock = threading.Lock()

        logger.info(f"Detection context created for session {session_id}")

    def process_frame(self, tick: FrameTick) -> List[Event]:
        """
        Process one frame's perception output.

        Args:
            tick: Faces and object predictions for the frame

        Returns:
            Events emitted for this frame, in gaze, drowsiness, object order
        """
        if not self.is_active:
            return []

        # Log order follows the order detector state advanced in
        with self._frame_lock:
            events = self._run_video_detectors(tick)
            self.aggregator.process_events(events)

        return events

    def _run_video_detectors(self, tick: FrameTick) -> List[Event]:
        now = tick.timestamp if tick.timestamp is not None else self._clock()
        faces = list(tick.faces or [])
        events: List[Event] = []

        self.frame_count += 1

        try:
            events.extend(self.gaze_tracker.track(faces, now=now, frame_width=tick.frame_width))
        except Exception as e:
            logger.warning(f"Gaze tracking error: {e}")

        if faces:
            try:
                drowsiness = self.drowsiness_detector.detect(faces[0], now=now)
                if drowsiness is not None:
                    events.append(drowsiness)
            except Exception as e:
                logger.warning(f"Drowsiness detection error: {e}")

        try:
            events.extend(self.object_detector.detect(tick.predictions, now=now))
        except Exception as e:
            logger.warning(f"Object detection error: {e}")

        return events

    def process_audio_block(
        self,
        magnitudes: Optional[Sequence[float]],
        now: Optional[float] = None
    ) -> Optional[Event]:
        """
        Process one audio block.

        Returns:
            A BACKGROUND_NOISE event or None
        """
        if not self.is_active:
            return None

        with self._audio_lock:
            self.audio_block_count += 1
            try:
                event = self.noise_detector.process_block(magnitudes, now=now)
            except Exception as e:
                logger.warning(f"Noise detection error: {e}")
                return None

            if event is not None:
                self.aggregator.process_events([event])

        return event

    @property
    def integrity_score(self) -> int:
        """Optimistic local score"""
        return self.aggregator.integrity_score

    def get_status(self) -> Dict[str, Any]:
        return {
            "session_id": self.id,
            "is_active": self.is_active,
            "frames_processed": self.frame_count,
            "audio_blocks_processed": self.audio_block_count,
            "local_integrity_score": self.aggregator.integrity_score,
            "drowsiness": self.drowsiness_detector.get_metrics(),
            "audio": self.noise_detector.get_metrics()
        }

    def reset(self):
        """Reset all detector state (explicit session reset)"""
        now = self._clock()
        self.gaze_tracker.reset(now)
        self.drowsiness_detector.reset(now)
        self.noise_detector.reset()
        logger.info(f"Detector state reset for session {self.id}")

    def stop(self):
        """Deactivate the pipeline; later frames and blocks are ignored"""
        self.is_active = False
        self.aggregator.stop()
        logger.info(f"Detection stopped for session {self.id}")
