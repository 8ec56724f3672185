"""
Report Generator - Projects a session into its review report
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, TYPE_CHECKING

from ..events import Event, Severity
from .integrity_scorer import IntegrityScorer

if TYPE_CHECKING:
    from ..ledger import Session

logger = logging.getLogger(__name__)


class Recommendation(str, Enum):
    PASS = "PASS"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"


@dataclass
class Report:
    """Review report for one session"""
    session_id: str
    candidate_name: str
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    integrity_score: int
    status: str
    recommendation: Recommendation
    needs_review: bool
    grade: str
    event_summary: Dict[str, int] = field(default_factory=dict)
    events: List[Event] = field(default_factory=list)

    @property
    def total_events(self) -> int:
        return len(self.events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "candidateName": self.candidate_name,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "integrityScore": self.integrity_score,
            "totalEvents": self.total_events,
            "eventSummary": dict(self.event_summary),
            "events": [event.to_dict() for event in self.events],
            "status": self.status,
            "recommendation": self.recommendation.value,
            "needsReview": self.needs_review,
            "grade": self.grade,
        }


class ReportGenerator:
    """
    Builds reports from session snapshots.

    The PASS threshold is a fixed policy, not configurable per session.
    """

    PASS_SCORE_THRESHOLD = 70

    def __init__(self):
        self.scorer = IntegrityScorer()

    def recommend(self, integrity_score: int) -> Recommendation:
        if integrity_score >= self.PASS_SCORE_THRESHOLD:
            return Recommendation.PASS
        return Recommendation.REVIEW_REQUIRED

    def summarize(self, events: List[Event]) -> Dict[str, int]:
        """Count events per type, in first-seen order"""
        return dict(Counter(event.type.value for event in events))

    def needs_review(self, integrity_score: int, events: List[Event]) -> bool:
        """Low score or any critical event calls for a human look"""
        if integrity_score < self.PASS_SCORE_THRESHOLD:
            return True
        return any(event.severity == Severity.CRITICAL for event in events)

    def generate(self, session: "Session") -> Report:
        """
        Generate a report from a session snapshot.

        Args:
            session: Session to project; its events are copied

        Returns:
            Report with per-type summary and recommendation
        """
        events = list(session.events)
        score = session.integrity_score

        report = Report(
            session_id=session.id,
            candidate_name=session.candidate_name,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=session.duration,
            integrity_score=score,
            status=session.status.value,
            recommendation=self.recommend(score),
            needs_review=self.needs_review(score, events),
            grade=self.scorer.get_grade(score),
            event_summary=self.summarize(events),
            events=events,
        )

        logger.debug(f"Report for {session.id}: score={score}, recommendation={report.recommendation.value}")
        return report
