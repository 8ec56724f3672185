"""
Suspicious Object Detector - Flags allow-listed object classes

Adapts the (class, score) predictions of an external object model
(e.g. COCO-SSD) into SUSPICIOUS_OBJECT events.
"""

import math
import time
import logging
from typing import Callable, Iterable, List, Optional, Set, Tuple, Any

from ..events import Event, EventType
from ..utils.geometry import round_half_up

logger = logging.getLogger(__name__)


class SuspiciousObjectDetector:
    """
    Emits one event per qualifying prediction per tick.

    No debounce: repeated detections across ticks each produce an event.
    """

    SUSPICIOUS_OBJECTS: Set[str] = {
        'cell phone',
        'book',
        'laptop',
        'tv',
        'keyboard',
        'mouse',
        'remote',
        'tablet'
    }

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._detections = 0

    def detect(
        self,
        predictions: Iterable[Tuple[str, float]],
        now: Optional[float] = None
    ) -> List[Event]:
        """
        Convert predictions for the current frame into events.

        Args:
            predictions: (class name, score in [0, 1]) pairs
            now: Frame time in epoch seconds

        Returns:
            SUSPICIOUS_OBJECT events in prediction order
        """
        if now is None:
            now = self._clock()

        events: List[Event] = []

        for prediction in predictions or []:
            parsed = _parse_prediction(prediction)
            if parsed is None:
                logger.debug(f"Skipping malformed prediction: {prediction!r}")
                continue

            name, score = parsed
            if name not in self.SUSPICIOUS_OBJECTS:
                continue

            events.append(Event.create(
                EventType.SUSPICIOUS_OBJECT,
                f"{name} detected with {round_half_up(score * 100)}% confidence",
                now=now,
                object=name,
                confidence=score
            ))

        self._detections += len(events)
        return events

    @property
    def detection_count(self) -> int:
        return self._detections


def _parse_prediction(prediction: Any) -> Optional[Tuple[str, float]]:
    """Accept (class, score) tuples or {"class": ..., "score": ...} dicts"""
    try:
        if isinstance(prediction, dict):
            name, score = prediction.get("class"), prediction.get("score")
        else:
            name, score = prediction
        score = float(score)
    except (TypeError, ValueError):
        return None

    if not isinstance(name, str) or not math.isfinite(score):
        return None

    return name, min(max(score, 0.0), 1.0)
