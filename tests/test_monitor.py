"""
Tests for the SessionMonitor tick loop
"""
import asyncio

import pytest

from tests.conftest import face


class FakeCapture:
    frame_width = 640

    def __init__(self):
        self.closed = False
        self.reads = 0

    def read_frame(self):
        self.reads += 1
        return object()

    def close(self):
        self.closed = True


class FakePerception:
    def __init__(self, faces=None, predictions=None, delay=0.0):
        self.faces = faces if faces is not None else [face()]
        self.predictions = predictions or []
        self.delay = delay
        self.calls = 0
        self.concurrent = 0
        self.max_concurrent = 0

    async def estimate_faces(self, frame):
        self.calls += 1
        self.concurrent += 1
        self.max_concurrent = max(self.max_concurrent, self.concurrent)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.concurrent -= 1
        return self.faces

    def detect_objects(self, frame):
        return self.predictions


class FakeAudio:
    def __init__(self, level):
        self.level = level
        self.closed = False

    async def read_block(self):
        return [self.level] * 16

    async def close(self):
        self.closed = True


def _monitor(ledger, perception, audio=None, frame_interval=0.01):
    from interview_proctor.proctor.monitor import SessionMonitor
    from interview_proctor.proctor.session import ProctorSession

    session = ledger.create_session("Ada")
    context = ProctorSession(session.id, sink=ledger.append_events)
    capture = FakeCapture()
    monitor = SessionMonitor(
        context,
        ledger,
        capture,
        perception,
        audio_source=audio,
        frame_interval=frame_interval,
        audio_interval=0.005
    )
    return monitor, capture


class TestSessionMonitor:
    """Tests for SessionMonitor"""

    @pytest.mark.asyncio
    async def test_ticks_feed_ledger(self, ledger):
        perception = FakePerception(predictions=[("cell phone", 0.95)])
        monitor, capture = _monitor(ledger, perception)

        monitor.start()
        await asyncio.sleep(0.1)
        ended = await monitor.stop()

        assert monitor.ticks > 0
        assert perception.calls > 0
        assert ended.status.value == "completed"
        assert ended.events
        assert all(e.type.value == "SUSPICIOUS_OBJECT" for e in ended.events)

    @pytest.mark.asyncio
    async def test_slow_inference_skips_ticks(self, ledger):
        perception = FakePerception(delay=0.05)
        monitor, _ = _monitor(ledger, perception)

        monitor.start()
        await asyncio.sleep(0.2)
        await monitor.stop()

        assert monitor.skipped_ticks > 0
        assert perception.max_concurrent == 1

    @pytest.mark.asyncio
    async def test_stop_halts_ticks_and_releases(self, ledger):
        audio = FakeAudio(level=10.0)
        monitor, capture = _monitor(ledger, FakePerception(), audio=audio)

        monitor.start()
        await asyncio.sleep(0.05)
        await monitor.stop()

        reads = capture.reads
        await asyncio.sleep(0.05)

        assert capture.reads == reads
        assert capture.closed is True
        assert audio.closed is True
        assert monitor.is_running is False

    @pytest.mark.asyncio
    async def test_audio_loop_emits_noise(self, ledger):
        audio = FakeAudio(level=120.0)
        monitor, _ = _monitor(ledger, FakePerception(), audio=audio, frame_interval=1.0)

        monitor.start()
        await asyncio.sleep(0.2)
        ended = await monitor.stop()

        assert monitor.audio_blocks > 10
        assert "BACKGROUND_NOISE" in [e.type.value for e in ended.events]

    @pytest.mark.asyncio
    async def test_perception_failure_skips_tick(self, ledger):
        class BrokenPerception(FakePerception):
            async def estimate_faces(self, frame):
                raise RuntimeError("model not loaded")

        monitor, _ = _monitor(ledger, BrokenPerception())

        monitor.start()
        await asyncio.sleep(0.05)
        ended = await monitor.stop()

        assert ended.events == []

    @pytest.mark.asyncio
    async def test_terminate_and_restart(self, ledger):
        monitor, _ = _monitor(ledger, FakePerception())

        monitor.start()
        ended = await monitor.stop(terminate=True, reason="Interviewer ended call")

        assert ended.status.value == "terminated"
        assert ended.notes == "Interviewer ended call"
        with pytest.raises(RuntimeError):
            monitor.start()
