"""
Interview Proctoring Module

Watches a remote interview and records integrity events:
- Face absence
- Gaze diversion
- Multiple people in frame
- Prohibited objects
- Drowsiness and excessive blinking
- Background noise

Keeps a per-session Integrity Score (0-100) and produces a
PASS / REVIEW_REQUIRED report when the session ends.
"""

from .api import router
from .events import Event, EventType, Severity
from .exceptions import (
    ProctorError,
    ProctorValidationError,
    SessionNotFoundError,
    SessionStateError
)
from .ledger import Session, SessionLedger, SessionStatus
from .monitor import SessionMonitor
from .session import ProctorSession

__all__ = [
    "router",
    "Event",
    "EventType",
    "Severity",
    "ProctorError",
    "ProctorValidationError",
    "SessionNotFoundError",
    "SessionStateError",
    "Session",
    "SessionLedger",
    "SessionStatus",
    "SessionMonitor",
    "ProctorSession"
]
