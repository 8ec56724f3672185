"""
Event Aggregator - Merges detector output into the session's local log

Keeps an ordered local copy of every event with an optimistic integrity
score and forwards each batch to the ledger, which stays the authority
for the persisted score.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Optional, Sequence

from ..events import Event
from ..exceptions import ProctorError
from ..scoring import compute_integrity_score

logger = logging.getLogger(__name__)

EventSink = Callable[[str, List[Event]], Any]


@dataclass
class EventAggregator:
    """
    Aggregates all detector events for one proctoring session.

    Producers (video tick, audio callback) may call process_events
    concurrently; batches are appended and forwarded in one critical
    section so the local log and the ledger see the same order.
    """

    session_id: str
    sink: Optional[EventSink] = None
    is_recording: bool = True

    events: List[Event] = field(default_factory=list)
    integrity_score: int = 100

    # Batches the sink rejected, kept for inspection or retry
    undelivered: List[Event] = field(default_factory=list)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def process_events(self, new_events: Optional[Sequence[Event]]) -> List[Event]:
        """
        Record a batch locally and forward it to the sink.

        Args:
            new_events: Events emitted by one detector invocation

        Returns:
            The batch as recorded
        """
        if not new_events:
            return []

        batch = list(new_events)

        with self._lock:
            self.events.extend(batch)
            self.integrity_score = compute_integrity_score(self.events)

            if self.sink is not None and self.is_recording:
                try:
                    self.sink(self.session_id, batch)
                except ProctorError as e:
                    self.undelivered.extend(batch)
                    logger.warning(f"Ledger rejected {len(batch)} events for {self.session_id}: {e}")

        return batch

    def stop(self):
        """Stop forwarding to the sink; local recording continues"""
        with self._lock:
            self.is_recording = False

    def get_summary(self) -> Dict[str, Any]:
        """Local view of the session log"""
        with self._lock:
            counts = Counter(event.type.value for event in self.events)
            return {
                "session_id": self.session_id,
                "total_events": len(self.events),
                "integrity_score": self.integrity_score,
                "event_counts": dict(counts),
                "undelivered": len(self.undelivered)
            }
