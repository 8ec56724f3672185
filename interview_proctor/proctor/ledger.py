"""
Session Ledger - Authoritative per-session event log and lifecycle

Holds every interview session in memory, appends detector events,
recomputes the integrity score from the full log on each append and
drives the active -> completed | terminated state machine.

Each session has its own lock; appends from concurrent producers
(video tick, audio callback, HTTP clients) are serialised per session.
"""

import math
import re
import uuid
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Any, Iterable, List, Optional, Tuple, Union

from .events import Event, Severity, parse_timestamp, timestamp_from_epoch
from .exceptions import (
    EventValidationError,
    InvalidSessionIdError,
    ProctorValidationError,
    SessionNotFoundError,
    SessionStateError,
)
from .scoring import compute_integrity_score, Report, ReportGenerator
from .utils.logging import (
    log_session_start,
    log_session_end,
    log_events_recorded,
    log_critical_event,
)

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^INT_[0-9A-F]{12}$")

TimestampLike = Union[datetime, str, int, float, None]
Listener = Callable[[str, Dict[str, Any]], None]


def new_session_id() -> str:
    return f"INT_{uuid.uuid4().hex[:12].upper()}"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


@dataclass
class Session:
    """
    One interview session as held by the ledger.

    integrity_score is always compute_integrity_score(events); it is
    only ever written by the ledger right after the log changes.
    """
    id: str
    candidate_name: str
    start_time: datetime
    interview_code: Optional[str] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    events: List[Event] = field(default_factory=list)
    integrity_score: int = 100
    status: SessionStatus = SessionStatus.ACTIVE
    notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    def snapshot(self) -> "Session":
        """Copy that shares no mutable state with the ledger"""
        return replace(self, events=list(self.events))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "candidateName": self.candidate_name,
            "interviewCode": self.interview_code,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "events": [event.to_dict() for event in self.events],
            "integrityScore": self.integrity_score,
            "status": self.status.value,
            "notes": self.notes,
        }


class SessionLedger:
    """
    In-memory session store with per-session serialisation.

    Appending to a terminal session is rejected with SessionStateError;
    ending a terminal session is a no-op that returns it unchanged.
    """

    DEFAULT_LIST_LIMIT = 50

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._listeners: List[Listener] = []
        self.report_generator = ReportGenerator()

    # ============== Lookup ==============

    @staticmethod
    def validate_session_id(session_id: Any) -> str:
        """
        Raises:
            InvalidSessionIdError: id is not of the form INT_XXXXXXXXXXXX
        """
        if not isinstance(session_id, str) or not SESSION_ID_PATTERN.match(session_id):
            raise InvalidSessionIdError(str(session_id))
        return session_id

    def _lookup(self, session_id: Any) -> Tuple[Session, threading.RLock]:
        session_id = self.validate_session_id(session_id)
        with self._registry_lock:
            session = self._sessions.get(session_id)
            lock = self._locks.get(session_id)
        if session is None or lock is None:
            raise SessionNotFoundError(session_id)
        return session, lock

    def __contains__(self, session_id: str) -> bool:
        with self._registry_lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)

    # ============== Notifications ==============

    def subscribe(self, listener: Listener):
        """Register a (topic, payload) callback for session changes"""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, topic: str, payload: Dict[str, Any]):
        for listener in list(self._listeners):
            try:
                listener(topic, payload)
            except Exception:
                # A broken notifier must not undo a committed mutation
                logger.exception(f"Listener failed for {topic}")

    # ============== Operations ==============

    def create_session(
        self,
        candidate_name: str,
        interview_code: Optional[str] = None,
        start_time: TimestampLike = None,
        session_id: Optional[str] = None
    ) -> Session:
        """
        Create a new active session with an empty log and score 100.

        Args:
            candidate_name: Name of the interviewed candidate
            interview_code: Optional external interview reference
            start_time: Start instant (defaults to now)
            session_id: Optional custom id (auto-generated if not provided)

        Raises:
            ProctorValidationError: blank name, malformed id or start time
            SessionStateError: a session with this id already exists
        """
        name = (candidate_name or "").strip()
        if not name:
            raise ProctorValidationError("Candidate name is required")

        session_id = self.validate_session_id(session_id) if session_id else new_session_id()
        started = self._parse_instant(start_time, "start time")

        session = Session(
            id=session_id,
            candidate_name=name,
            interview_code=(interview_code or "").strip() or None,
            start_time=started,
        )

        with self._registry_lock:
            if session_id in self._sessions:
                raise SessionStateError(session_id, "existing", f"Session {session_id} already exists")
            self._sessions[session_id] = session
            self._locks[session_id] = threading.RLock()

        log_session_start(session_id, name, session.interview_code)
        self._notify("new-session", {
            "id": session_id,
            "candidateName": name,
            "startTime": started.isoformat()
        })

        return session.snapshot()

    def count_sessions(self, status: Optional[SessionStatus] = None) -> int:
        with self._registry_lock:
            entries = [(self._sessions[sid], self._locks[sid]) for sid in self._sessions]

        if status is None:
            return len(entries)

        count = 0
        for session, lock in entries:
            with lock:
                if session.status == status:
                    count += 1
        return count

    def get_session(self, session_id: str) -> Session:
        session, lock = self._lookup(session_id)
        with lock:
            return session.snapshot()

    def list_sessions(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        status: Optional[SessionStatus] = None
    ) -> List[Session]:
        """Sessions ordered by start time, newest first"""
        with self._registry_lock:
            entries = [(self._sessions[sid], self._locks[sid]) for sid in self._sessions]

        snapshots = []
        for session, lock in entries:
            with lock:
                if status is None or session.status == status:
                    snapshots.append(session.snapshot())

        snapshots.sort(key=lambda s: s.start_time, reverse=True)
        return snapshots[:max(0, limit)]

    def append_events(self, session_id: str, events: Iterable[Union[Event, Dict[str, Any]]]) -> Session:
        """
        Append a batch of events and recompute the score from the full log.

        Batches are additive: re-submitting the same events records
        them again.

        Raises:
            InvalidSessionIdError, SessionNotFoundError
            EventValidationError: any event in the batch is malformed
                (nothing from the batch is appended)
            SessionStateError: the session is completed or terminated
        """
        session, lock = self._lookup(session_id)
        batch = [self._coerce_event(event) for event in events]

        with lock:
            if session.status.is_terminal:
                raise SessionStateError(
                    session.id,
                    session.status.value,
                    f"Cannot append events to {session.status.value} session {session.id}"
                )

            session.events.extend(batch)
            session.integrity_score = compute_integrity_score(session.events)

            log_events_recorded(session.id, [e.type.value for e in batch], session.integrity_score)
            for event in batch:
                if event.severity == Severity.CRITICAL:
                    log_critical_event(session.id, event.type.value, event.message)

            if batch:
                self._notify("session-update", {
                    "sessionId": session.id,
                    "events": [event.to_dict() for event in batch],
                    "integrityScore": session.integrity_score
                })

            return session.snapshot()

    def end_session(self, session_id: str, end_time: TimestampLike = None) -> Session:
        """Move an active session to completed; no-op if already terminal"""
        return self._finish(session_id, SessionStatus.COMPLETED, end_time)

    def terminate_session(
        self,
        session_id: str,
        end_time: TimestampLike = None,
        reason: Optional[str] = None
    ) -> Session:
        """Move an active session to terminated; no-op if already terminal"""
        return self._finish(session_id, SessionStatus.TERMINATED, end_time, reason)

    def get_report(self, session_id: str) -> Report:
        session, lock = self._lookup(session_id)
        with lock:
            snapshot = session.snapshot()
        return self.report_generator.generate(snapshot)

    # ============== Internals ==============

    def _finish(
        self,
        session_id: str,
        status: SessionStatus,
        end_time: TimestampLike,
        reason: Optional[str] = None
    ) -> Session:
        session, lock = self._lookup(session_id)

        with lock:
            if session.status.is_terminal:
                logger.info(f"Session {session.id} already {session.status.value}")
                return session.snapshot()

            ended = self._parse_instant(end_time, "end time")
            elapsed = (ended - session.start_time).total_seconds()
            if elapsed < 0:
                raise ProctorValidationError(
                    f"End time {ended.isoformat()} is before start time {session.start_time.isoformat()}"
                )

            session.end_time = ended
            session.duration = int(math.floor(elapsed))
            session.status = status
            if reason:
                session.notes = reason

            log_session_end(
                session.id,
                status.value,
                session.integrity_score,
                session.duration,
                len(session.events)
            )
            self._notify("session-ended", {
                "sessionId": session.id,
                "candidateName": session.candidate_name,
                "status": status.value,
                "duration": session.duration,
                "integrityScore": session.integrity_score
            })

            return session.snapshot()

    @staticmethod
    def _coerce_event(event: Union[Event, Dict[str, Any]]) -> Event:
        if isinstance(event, Event):
            return event
        if isinstance(event, dict):
            return Event.from_dict(event)
        raise EventValidationError(f"Unsupported event payload: {type(event).__name__}")

    @staticmethod
    def _parse_instant(value: TimestampLike, label: str) -> datetime:
        if value is None:
            return timestamp_from_epoch()
        try:
            return parse_timestamp(value)
        except EventValidationError:
            raise ProctorValidationError(f"Invalid {label}: {value!r}")
