"""
Proctoring errors raised at the ledger boundary.

Detector-level signal problems never raise; they fail open inside
the detectors.
"""


class ProctorError(Exception):
    """Base class for proctoring errors"""


class ProctorValidationError(ProctorError):
    """Input is malformed (bad id, bad event payload, bad end time)"""


class InvalidSessionIdError(ProctorValidationError):
    """Session id does not have the expected format"""

    def __init__(self, session_id: str):
        super().__init__(f"Invalid session ID format: {session_id!r}")
        self.session_id = session_id


class EventValidationError(ProctorValidationError):
    """Event payload cannot be turned into an Event"""


class SessionNotFoundError(ProctorError):
    """No session exists for a well-formed id"""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionStateError(ProctorError):
    """Operation is not allowed in the session's current lifecycle state"""

    def __init__(self, session_id: str, status: str, message: str = ""):
        super().__init__(message or f"Session {session_id} is {status}")
        self.session_id = session_id
        self.status = status
