"""
Integrity Scorer - Computes the integrity score from a session's event log

The score is a pure fold over the event types:

    integrity_score = clamp(100 - sum(deduction(event.type)), 0, 100)

Deductions are not capped per type. The same function backs the
client-side optimistic score and the authoritative ledger score.
"""

import logging
from typing import Dict, Any, Iterable, Union

from ..events import Event, EventType, EVENT_PROFILES

logger = logging.getLogger(__name__)

MAX_SCORE = 100
MIN_SCORE = 0

EventLike = Union[Event, EventType, str]


def deduction_for(event: EventLike) -> int:
    """Deduction for a single event or event type; unknown types cost 0"""
    event_type = event.type if isinstance(event, Event) else event
    try:
        return EVENT_PROFILES[EventType(event_type)].deduction
    except ValueError:
        return 0


def compute_integrity_score(events: Iterable[EventLike]) -> int:
    """
    Compute integrity score from the full event history.

    Args:
        events: Events (or bare event types) recorded for a session

    Returns:
        Integrity score (0-100, higher is better)
    """
    total = sum(deduction_for(event) for event in events)
    return max(MIN_SCORE, min(MAX_SCORE, MAX_SCORE - total))


class IntegrityScorer:
    """
    Scoring facade with breakdown and grading on top of
    compute_integrity_score.
    """

    def compute(self, events: Iterable[EventLike]) -> int:
        return compute_integrity_score(events)

    def compute_breakdown(self, events: Iterable[EventLike]) -> Dict[str, Any]:
        """
        Compute integrity score with per-type penalties.

        Args:
            events: Session events

        Returns:
            Dict with score, unclamped raw score and per-type penalties
        """
        penalties: Dict[str, Dict[str, int]] = {}
        total = 0

        for event in events:
            deduction = deduction_for(event)
            if deduction == 0:
                continue
            event_type = event.type if isinstance(event, Event) else EventType(event)
            entry = penalties.setdefault(
                event_type.value,
                {"count": 0, "deduction": deduction, "penalty": 0}
            )
            entry["count"] += 1
            entry["penalty"] += deduction
            total += deduction

        raw_score = MAX_SCORE - total
        final_score = max(MIN_SCORE, min(MAX_SCORE, raw_score))

        logger.debug(f"Score breakdown: raw={raw_score}, final={final_score}")

        return {
            "integrity_score": final_score,
            "raw_score": raw_score,
            "penalties": penalties,
            "total_penalty": total
        }

    def get_grade(self, score: int) -> str:
        """
        Convert score to letter grade.

        Args:
            score: Integrity score (0-100)

        Returns:
            Grade: 'A' (excellent), 'B' (good), 'C' (warning), 'D' (concerning), 'F' (failed)
        """
        if score >= 90:
            return "A"
        elif score >= 80:
            return "B"
        elif score >= 70:
            return "C"
        elif score >= 60:
            return "D"
        else:
            return "F"
