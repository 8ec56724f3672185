"""
Pytest Configuration for Interview Proctor Tests
"""
import pytest
from fastapi.testclient import TestClient


class FakeClock:
    """Manually advanced epoch-seconds clock"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def eye(open_: bool = True):
    """Eye landmarks with EAR 1.0 when open and 0.1 when closed"""
    from interview_proctor.proctor.signals import EyeLandmarks

    a = 1.5 if open_ else 0.15
    return EyeLandmarks(
        upper=[(0, 0), (1, -a), (2, -a), (3, 0)],
        lower=[(0, 0), (1, a), (2, a), (3, 0)]
    )


def face(nose_x: float = 320, eyes_open: bool = True):
    """Face with keypoints around nose_x on a 640px frame"""
    from interview_proctor.proctor.signals import Face

    return Face(
        keypoints={
            "noseTip": (nose_x, 240),
            "leftEye": (nose_x - 30, 220),
            "rightEye": (nose_x + 30, 220)
        },
        left_eye=eye(eyes_open),
        right_eye=eye(eyes_open)
    )


@pytest.fixture(scope='function')
def clock():
    """Fake clock starting at a fixed epoch"""
    return FakeClock()


@pytest.fixture(scope='function')
def ledger():
    """Fresh in-memory ledger"""
    from interview_proctor.proctor.ledger import SessionLedger
    return SessionLedger()


@pytest.fixture(scope='session')
def app():
    """Create FastAPI app for testing"""
    from interview_proctor.main import app
    return app


@pytest.fixture(scope='function')
def client(app):
    """FastAPI test client"""
    return TestClient(app)
