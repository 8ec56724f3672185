"""
Proctoring Events - the immutable records that make up a session log

Every detector emits Event instances; the ledger stores them in
append order and the scorer folds over their types.
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Union

from .exceptions import EventValidationError


class EventType(str, Enum):
    """Integrity-relevant event types"""
    NO_FACE = "NO_FACE"
    LOOKING_AWAY = "LOOKING_AWAY"
    MULTIPLE_FACES = "MULTIPLE_FACES"
    SUSPICIOUS_OBJECT = "SUSPICIOUS_OBJECT"
    DROWSINESS = "DROWSINESS"
    BACKGROUND_NOISE = "BACKGROUND_NOISE"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class EventProfile:
    """Per-type policy values: score deduction, default severity, display"""
    deduction: int
    default_severity: Severity
    label: str
    icon: str


EVENT_PROFILES: Dict[EventType, EventProfile] = {
    EventType.NO_FACE: EventProfile(10, Severity.MEDIUM, "No face", "\U0001F6AB"),
    EventType.LOOKING_AWAY: EventProfile(5, Severity.MEDIUM, "Looking away", "\U0001F440"),
    EventType.MULTIPLE_FACES: EventProfile(15, Severity.CRITICAL, "Multiple faces", "\U0001F465"),
    EventType.SUSPICIOUS_OBJECT: EventProfile(20, Severity.CRITICAL, "Suspicious object", "\U0001F4F1"),
    EventType.DROWSINESS: EventProfile(10, Severity.HIGH, "Drowsiness", "\U0001F634"),
    EventType.BACKGROUND_NOISE: EventProfile(5, Severity.MEDIUM, "Background noise", "\U0001F50A"),
}

# Severity used when neither the producer nor the profile table supplies one
DEFAULT_SEVERITY = Severity.MEDIUM


def timestamp_from_epoch(seconds: Optional[float] = None) -> datetime:
    """Convert epoch seconds (default: now) to an aware UTC datetime"""
    if seconds is None:
        seconds = time.time()
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_timestamp(value: Union[str, int, float, datetime, None]) -> datetime:
    """
    Parse a transported timestamp.

    Accepts ISO-8601 strings, datetimes (naive ones are taken as UTC)
    and numbers in epoch milliseconds, which is what browser clients send.
    """
    if value is None:
        return timestamp_from_epoch()

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, bool):
        raise EventValidationError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise EventValidationError(f"Invalid timestamp: {value!r}")
        try:
            return timestamp_from_epoch(value / 1000.0)
        except (OverflowError, OSError, ValueError):
            raise EventValidationError(f"Timestamp out of range: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise EventValidationError(f"Invalid timestamp: {value!r}")
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    raise EventValidationError(f"Invalid timestamp: {value!r}")


def _optional_float(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise EventValidationError(f"Invalid {key}: {value!r}")
    if not math.isfinite(number):
        raise EventValidationError(f"Invalid {key}: {value!r}")
    return number


@dataclass(frozen=True)
class Event:
    """A single integrity event. Immutable once created."""
    type: EventType
    timestamp: datetime
    message: str
    severity: Severity = DEFAULT_SEVERITY
    duration: Optional[float] = None
    object: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def create(
        cls,
        event_type: EventType,
        message: str,
        now: Optional[float] = None,
        severity: Optional[Severity] = None,
        **fields: Any
    ) -> "Event":
        """Build an event stamped at `now` with the type's default severity"""
        if severity is None:
            severity = EVENT_PROFILES[event_type].default_severity
        return cls(
            type=event_type,
            timestamp=timestamp_from_epoch(now),
            message=message,
            severity=severity,
            **fields
        )

    @property
    def profile(self) -> EventProfile:
        return EVENT_PROFILES[self.type]

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with the interoperable field set"""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "duration": self.duration,
            "object": self.object,
            "confidence": self.confidence,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """
        Build an event from a transported payload.

        Raises:
            EventValidationError: unknown type or severity, confidence out
                of [0, 1], or a negative duration
        """
        try:
            event_type = EventType(data.get("type"))
        except ValueError:
            raise EventValidationError(f"Unknown event type: {data.get('type')!r}")

        raw_severity = data.get("severity")
        if raw_severity is None:
            severity = EVENT_PROFILES[event_type].default_severity
        else:
            try:
                severity = Severity(raw_severity)
            except ValueError:
                raise EventValidationError(f"Unknown severity: {raw_severity!r}")

        confidence = _optional_float(data, "confidence")
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            raise EventValidationError(f"Confidence out of range: {confidence}")

        duration = _optional_float(data, "duration")
        if duration is not None and duration < 0:
            raise EventValidationError(f"Negative duration: {duration}")

        return cls(
            type=event_type,
            timestamp=parse_timestamp(data.get("timestamp")),
            message=str(data.get("message") or EVENT_PROFILES[event_type].label),
            severity=severity,
            duration=duration,
            object=data.get("object"),
            confidence=confidence,
        )
