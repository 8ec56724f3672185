"""
Proctoring Logger - Structured lines for the session lifecycle

Every line starts with "[PROCTOR] session=<id> event=<name>" followed by
key=value pairs, so session activity can be grepped out of mixed logs.
"""

import logging
from typing import Dict, Any, Optional, Sequence

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _format_details(details: Dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in details.items() if value is not None)


def log_proctor_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log one lifecycle step of a session.

    Args:
        session_id: Interview session ID
        event_type: Step name (session_start, events_recorded, session_end, ...)
        details: key=value pairs appended to the line; None values are dropped
        level: debug, info, warning or error
    """
    line = f"[PROCTOR] session={session_id} event={event_type}"
    if details:
        rendered = _format_details(details)
        if rendered:
            line = f"{line} {rendered}"

    logger.log(_LEVELS.get(level, logging.INFO), line)


def log_session_start(session_id: str, candidate_name: str, interview_code: Optional[str] = None):
    log_proctor_event(
        session_id,
        "session_start",
        {"candidate": repr(candidate_name), "interview": interview_code}
    )


def log_session_end(session_id: str, status: str, integrity_score: int, duration: int, total_events: int):
    """Completed and terminated sessions both end here"""
    log_proctor_event(
        session_id,
        f"session_{status}",
        {
            "integrity_score": integrity_score,
            "duration_s": duration,
            "events": total_events
        }
    )


def log_events_recorded(session_id: str, event_types: Sequence[str], integrity_score: int):
    log_proctor_event(
        session_id,
        "events_recorded",
        {
            "count": len(event_types),
            "types": ",".join(event_types) or "none",
            "integrity_score": integrity_score
        },
        level="debug" if not event_types else "info"
    )


def log_critical_event(session_id: str, event_type: str, message: str):
    """Critical events (extra faces, prohibited objects) are raised to warning"""
    log_proctor_event(
        session_id,
        f"critical_{event_type.lower()}",
        {"message": repr(message)},
        level="warning"
    )
