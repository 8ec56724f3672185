"""
Session Monitor - Drives a ProctorSession from live capture

Two independent asyncio loops per session:
- video: fixed-period timer; each tick reads a frame, runs the external
  perception models and feeds ProctorSession.process_frame
- audio: reads frequency blocks at its own cadence and feeds
  ProctorSession.process_audio_block

Collaborators are duck-typed. Their methods may be plain or async:
- capture.read_frame() -> frame or None, optional capture.frame_width
- perception.estimate_faces(frame) -> [Face]
- perception.detect_objects(frame) -> [(class, score)]
- audio_source.read_block() -> [magnitude] or None
- optional close() on capture and audio_source
"""

import asyncio
import inspect
import time
import logging
from typing import Any, Callable, Optional

from ..config import settings
from .ledger import Session, SessionLedger, TimestampLike
from .session import ProctorSession
from .signals import FrameTick

logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class SessionMonitor:
    """
    Tick loop with a single in-flight latch per session.

    A video tick fires every frame_interval seconds whether or not the
    previous inference finished; while one is still running, new ticks
    are skipped instead of queued.
    """

    def __init__(
        self,
        session: ProctorSession,
        ledger: SessionLedger,
        capture: Any,
        perception: Any,
        audio_source: Optional[Any] = None,
        frame_interval: float = settings.FRAME_INTERVAL_SECONDS,
        audio_interval: float = settings.AUDIO_BLOCK_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.session = session
        self.ledger = ledger
        self.capture = capture
        self.perception = perception
        self.audio_source = audio_source
        self.frame_interval = frame_interval
        self.audio_interval = audio_interval
        self._clock = clock

        self._video_task: Optional[asyncio.Task] = None
        self._audio_task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._stopped = False

        self.ticks = 0
        self.skipped_ticks = 0
        self.audio_blocks = 0

    @property
    def is_running(self) -> bool:
        return self._video_task is not None and not self._stopped

    def start(self):
        """Start the video and audio loops on the running event loop"""
        if self._stopped:
            raise RuntimeError(f"Monitor for session {self.session.id} was already stopped")
        if self._video_task is not None:
            return

        self._video_task = asyncio.create_task(self._video_loop())
        if self.audio_source is not None:
            self._audio_task = asyncio.create_task(self._audio_loop())

        logger.info(f"Monitoring started for session {self.session.id}")

    # ============== Video ==============

    async def _video_loop(self):
        while True:
            await asyncio.sleep(self.frame_interval)

            if self._in_flight is not None and not self._in_flight.done():
                self.skipped_ticks += 1
                logger.debug(f"Inference still running for {self.session.id}, tick skipped")
                continue

            self.ticks += 1
            self._in_flight = asyncio.create_task(self._video_tick())

    async def _video_tick(self):
        try:
            frame = await _resolve(self.capture.read_frame())
        except Exception as e:
            logger.warning(f"Frame capture error: {e}")
            return

        if frame is None:
            return

        try:
            faces = await _resolve(self.perception.estimate_faces(frame))
        except Exception as e:
            # Model unavailable: no event for this tick
            logger.warning(f"Face estimation error: {e}")
            return

        try:
            predictions = await _resolve(self.perception.detect_objects(frame))
        except Exception as e:
            logger.warning(f"Object detection error: {e}")
            predictions = []

        if not self.session.is_active:
            return

        self.session.process_frame(FrameTick(
            faces=list(faces or []),
            predictions=list(predictions or []),
            frame_width=getattr(self.capture, "frame_width", None),
            timestamp=self._clock()
        ))

    # ============== Audio ==============

    async def _audio_loop(self):
        while True:
            try:
                block = await _resolve(self.audio_source.read_block())
            except Exception as e:
                logger.warning(f"Audio capture error: {e}")
                block = None

            if block is not None and self.session.is_active:
                self.audio_blocks += 1
                self.session.process_audio_block(block, now=self._clock())

            await asyncio.sleep(self.audio_interval)

    # ============== Shutdown ==============

    async def stop(
        self,
        end_time: TimestampLike = None,
        terminate: bool = False,
        reason: Optional[str] = None
    ) -> Session:
        """
        Halt detection, release capture resources, then end the session.

        The ledger transition happens only after both loops and any
        in-flight inference are cancelled, so no tick runs after the
        end time is recorded.

        Args:
            end_time: End instant (defaults to now)
            terminate: Record the session as terminated instead of completed
            reason: Stored on terminated sessions

        Returns:
            The ended session
        """
        if not self._stopped:
            self._stopped = True
            self.session.stop()

            tasks = [t for t in (self._video_task, self._audio_task, self._in_flight) if t is not None]
            for task in tasks:
                task.cancel()

            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Monitor task for {self.session.id} failed: {result}")

            await self._release()

            logger.info(
                f"Monitoring stopped for session {self.session.id} "
                f"(ticks={self.ticks}, skipped={self.skipped_ticks}, audio_blocks={self.audio_blocks})"
            )

        if terminate:
            return self.ledger.terminate_session(self.session.id, end_time, reason)
        return self.ledger.end_session(self.session.id, end_time)

    async def _release(self):
        for resource in (self.capture, self.audio_source):
            close = getattr(resource, "close", None)
            if close is None:
                continue
            try:
                await _resolve(close())
            except Exception as e:
                logger.warning(f"Error releasing capture resource: {e}")
