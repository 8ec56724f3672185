"""
Proctoring API - FastAPI endpoints for interview proctoring

Endpoints:
- GET  /api/health - Health check
- POST /api/sessions - Start a session
- GET  /api/sessions - List recent sessions
- GET  /api/sessions/{session_id} - Get a session
- POST /api/sessions/{session_id}/events - Append events
- POST /api/sessions/{session_id}/end - End a session
- POST /api/sessions/{session_id}/terminate - Terminate a session
- GET  /api/sessions/{session_id}/report - Get the session report
- POST /api/sessions/{session_id}/frame - Run detectors on one frame's perception output
- POST /api/sessions/{session_id}/audio - Run the noise detector on one audio block
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..config import settings
from .exceptions import (
    ProctorError,
    ProctorValidationError,
    SessionNotFoundError,
    SessionStateError
)
from .ledger import SessionLedger, SessionStatus
from .session import ProctorSession
from .signals import EyeLandmarks, Face, FrameTick

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Proctoring"])

# In-memory storage (replace with a persistent store for production)
ledger = SessionLedger()
_detection_contexts: Dict[str, ProctorSession] = {}
_contexts_lock = threading.Lock()


# ============== Request/Response Models ==============

class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventModel(CamelModel):
    type: str
    timestamp: datetime
    duration: Optional[float] = None
    object: Optional[str] = None
    confidence: Optional[float] = None
    message: str
    severity: str


class EventPayload(CamelModel):
    """Event as submitted by a client; timestamps are ISO strings or epoch ms"""
    type: str
    timestamp: Optional[Union[float, datetime]] = None
    duration: Optional[float] = None
    object: Optional[str] = None
    confidence: Optional[float] = None
    message: Optional[str] = None
    severity: Optional[str] = None


class CreateSessionRequest(CamelModel):
    candidate_name: str = Field(..., description="Name of the candidate")
    interview_code: Optional[str] = Field(None, description="External interview reference")
    start_time: Optional[Union[float, datetime]] = Field(None, description="ISO time or epoch ms")


class AppendEventsRequest(CamelModel):
    events: List[EventPayload]


class EndSessionRequest(CamelModel):
    end_time: Optional[Union[float, datetime]] = Field(None, description="ISO time or epoch ms")


class TerminateSessionRequest(EndSessionRequest):
    reason: Optional[str] = None


class SessionResponse(CamelModel):
    id: str
    candidate_name: str
    interview_code: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    events: List[EventModel]
    integrity_score: int
    status: str
    notes: Optional[str] = None


class ReportResponse(CamelModel):
    session_id: str
    candidate_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    integrity_score: int
    total_events: int
    event_summary: Dict[str, int]
    events: List[EventModel]
    status: str
    recommendation: str
    needs_review: bool
    grade: str


class EyePayload(CamelModel):
    upper: List[List[float]] = []
    lower: List[List[float]] = []
    iris: List[List[float]] = []


class FacePayload(CamelModel):
    keypoints: Dict[str, List[float]] = {}
    left_eye: Optional[EyePayload] = None
    right_eye: Optional[EyePayload] = None

    def to_face(self) -> Face:
        def eye(payload: Optional[EyePayload]) -> Optional[EyeLandmarks]:
            if payload is None:
                return None
            return EyeLandmarks(upper=payload.upper, lower=payload.lower, iris=payload.iris)

        return Face(
            keypoints=dict(self.keypoints),
            left_eye=eye(self.left_eye),
            right_eye=eye(self.right_eye)
        )


class PredictionPayload(CamelModel):
    class_name: str = Field(..., alias="class")
    score: float


class FrameRequest(CamelModel):
    """Perception output for one frame"""
    faces: List[FacePayload] = []
    predictions: List[PredictionPayload] = []
    frame_width: Optional[float] = None
    timestamp: Optional[float] = Field(None, description="Epoch ms, defaults to now")


class FrameResponse(CamelModel):
    session_id: str
    events: List[EventModel]
    integrity_score: int
    local_integrity_score: int
    frames_processed: int


class AudioBlockRequest(CamelModel):
    magnitudes: List[float] = Field(..., description="Frequency-bin magnitudes on a 0-255 scale")
    timestamp: Optional[float] = Field(None, description="Epoch ms, defaults to now")


class AudioBlockResponse(CamelModel):
    session_id: str
    event: Optional[EventModel] = None
    level: float
    integrity_score: int


# ============== Helpers ==============

def _http_error(e: ProctorError) -> HTTPException:
    if isinstance(e, ProctorValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, SessionNotFoundError):
        return HTTPException(status_code=404, detail="Session not found")
    if isinstance(e, SessionStateError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _session_response(session) -> SessionResponse:
    return SessionResponse.model_validate(session.to_dict())


def _detection_context(session_id: str) -> ProctorSession:
    with _contexts_lock:
        context = _detection_contexts.get(session_id)
        if context is None:
            context = ProctorSession(
                session_id=session_id,
                sink=ledger.append_events,
                frame_width=settings.FRAME_WIDTH
            )
            _detection_contexts[session_id] = context
        return context


def _active_session(session_id: str):
    try:
        session = ledger.get_session(session_id)
    except ProctorError as e:
        raise _http_error(e)

    if not session.is_active:
        raise HTTPException(status_code=409, detail=f"Session is {session.status.value}")
    return session


def _epoch_seconds(epoch_ms: Optional[float]) -> Optional[float]:
    return None if epoch_ms is None else epoch_ms / 1000.0


# ============== API Endpoints ==============

@router.get("/health")
async def health_check():
    """Health check for proctoring module"""
    return {
        "status": "healthy",
        "active_sessions": ledger.count_sessions(SessionStatus.ACTIVE),
        "module": "proctoring"
    }


@router.post("/sessions", response_model=SessionResponse, status_code=201)
def create_session(request: CreateSessionRequest):
    """
    Start a new interview session.

    Creates the ledger entry (empty log, score 100) and the session's
    detection context.
    """
    try:
        session = ledger.create_session(
            candidate_name=request.candidate_name,
            interview_code=request.interview_code,
            start_time=request.start_time
        )
    except ProctorError as e:
        raise _http_error(e)

    _detection_context(session.id)
    logger.info(f"Started interview session: {session.id}")

    return _session_response(session)


@router.get("/sessions", response_model=List[SessionResponse])
def list_sessions(
    limit: int = Query(settings.SESSION_LIST_LIMIT, ge=1, le=500),
    status: Optional[SessionStatus] = None
):
    """List sessions, newest first"""
    return [_session_response(s) for s in ledger.list_sessions(limit=limit, status=status)]


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str):
    try:
        return _session_response(ledger.get_session(session_id))
    except ProctorError as e:
        raise _http_error(e)


@router.post("/sessions/{session_id}/events", response_model=SessionResponse)
def append_events(session_id: str, request: AppendEventsRequest):
    """
    Append a batch of events to the session log.

    The integrity score is recomputed from the full log. Rejected with
    409 once the session is completed or terminated.
    """
    payloads = [event.model_dump() for event in request.events]
    try:
        session = ledger.append_events(session_id, payloads)
    except ProctorError as e:
        raise _http_error(e)

    logger.info(f"Logged {len(payloads)} events for session {session_id}")
    return _session_response(session)


@router.post("/sessions/{session_id}/end", response_model=SessionResponse)
def end_session(session_id: str, request: Optional[EndSessionRequest] = None):
    """
    End a session.

    Detection stops before the session is marked completed. Ending an
    already finished session returns it unchanged.
    """
    end_time = request.end_time if request else None
    try:
        ledger.get_session(session_id)
        _stop_detection(session_id)
        session = ledger.end_session(session_id, end_time)
    except ProctorError as e:
        raise _http_error(e)

    return _session_response(session)


@router.post("/sessions/{session_id}/terminate", response_model=SessionResponse)
def terminate_session(session_id: str, request: Optional[TerminateSessionRequest] = None):
    """Terminate a session early (e.g. by the interviewer)"""
    end_time = request.end_time if request else None
    reason = request.reason if request else None
    try:
        ledger.get_session(session_id)
        _stop_detection(session_id)
        session = ledger.terminate_session(session_id, end_time, reason)
    except ProctorError as e:
        raise _http_error(e)

    return _session_response(session)


@router.get("/sessions/{session_id}/report", response_model=ReportResponse)
def get_report(session_id: str):
    """Per-type event summary and PASS / REVIEW_REQUIRED recommendation"""
    try:
        report = ledger.get_report(session_id)
    except ProctorError as e:
        raise _http_error(e)

    return ReportResponse.model_validate(report.to_dict())


@router.post("/sessions/{session_id}/frame", response_model=FrameResponse)
def process_frame(session_id: str, request: FrameRequest):
    """
    Run the video detectors on one frame's perception output.

    Emitted events are appended to the session log.
    """
    _active_session(session_id)
    context = _detection_context(session_id)

    events = context.process_frame(FrameTick(
        faces=[face.to_face() for face in request.faces],
        predictions=[(p.class_name, p.score) for p in request.predictions],
        frame_width=request.frame_width,
        timestamp=_epoch_seconds(request.timestamp)
    ))

    session = ledger.get_session(session_id)

    return FrameResponse(
        session_id=session_id,
        events=[EventModel.model_validate(e.to_dict()) for e in events],
        integrity_score=session.integrity_score,
        local_integrity_score=context.integrity_score,
        frames_processed=context.frame_count
    )


@router.post("/sessions/{session_id}/audio", response_model=AudioBlockResponse)
def process_audio_block(session_id: str, request: AudioBlockRequest):
    """Run the noise detector on one block of frequency magnitudes"""
    _active_session(session_id)
    context = _detection_context(session_id)

    event = context.process_audio_block(request.magnitudes, now=_epoch_seconds(request.timestamp))
    session = ledger.get_session(session_id)

    return AudioBlockResponse(
        session_id=session_id,
        event=EventModel.model_validate(event.to_dict()) if event else None,
        level=context.noise_detector.last_level,
        integrity_score=session.integrity_score
    )


def _stop_detection(session_id: str):
    with _contexts_lock:
        context = _detection_contexts.pop(session_id, None)
    if context is not None:
        context.stop()
