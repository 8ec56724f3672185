"""
Noise Detector - Detects sustained background noise or voices

Consumes byte-scaled (0-255) frequency magnitudes per audio block, as
produced by an FFT analyser, and fires once the mean energy stays above
the threshold for more than 10 consecutive blocks (~0.5s).
"""

import time
import logging
from typing import Callable, Dict, Any, Optional, Sequence

import numpy as np

from ..events import Event, EventType

logger = logging.getLogger(__name__)


class NoiseDetector:
    """
    Debounced energy detector for one session's audio stream.

    Any quiet block resets the streak; there is no partial memory
    across interruptions.
    """

    # Mean magnitude threshold on the 0-255 scale
    NOISE_THRESHOLD = 40.0

    # Blocks above threshold that must be exceeded before firing
    CONSECUTIVE_REQUIRED = 10

    def __init__(
        self,
        threshold: float = NOISE_THRESHOLD,
        consecutive_required: int = CONSECUTIVE_REQUIRED,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize noise detector.

        Args:
            threshold: Mean magnitude above which a block counts as noisy
            consecutive_required: Streak length that must be exceeded
            clock: Source of epoch seconds
        """
        self.threshold = threshold
        self.consecutive_required = consecutive_required
        self._clock = clock

        self.consecutive_noise_frames = 0
        self._total_blocks = 0
        self._noisy_blocks = 0
        self.last_level = 0.0

    def block_level(self, magnitudes: Optional[Sequence[float]]) -> float:
        """Mean magnitude of a block; empty or invalid blocks read as silence"""
        if magnitudes is None:
            return 0.0
        try:
            values = np.asarray(magnitudes, dtype=np.float64)
        except (TypeError, ValueError):
            return 0.0
        if values.size == 0:
            return 0.0
        level = float(np.mean(values))
        return level if np.isfinite(level) else 0.0

    def process_block(
        self,
        magnitudes: Optional[Sequence[float]],
        now: Optional[float] = None
    ) -> Optional[Event]:
        """
        Process one audio block.

        Args:
            magnitudes: Frequency-bin magnitudes for the block
            now: Block time in epoch seconds

        Returns:
            A BACKGROUND_NOISE event or None
        """
        level = self.block_level(magnitudes)
        self.last_level = level
        self._total_blocks += 1

        if level <= self.threshold:
            self.consecutive_noise_frames = 0
            return None

        self._noisy_blocks += 1
        self.consecutive_noise_frames += 1

        if self.consecutive_noise_frames <= self.consecutive_required:
            return None

        self.consecutive_noise_frames = 0
        logger.debug(f"Sustained noise detected (level: {level:.1f})")

        return Event.create(
            EventType.BACKGROUND_NOISE,
            "Background noise/voices detected",
            now=self._clock() if now is None else now
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Get accumulated audio metrics"""
        return {
            "total_blocks": self._total_blocks,
            "noisy_blocks": self._noisy_blocks,
            "noisy_ratio": self._noisy_blocks / max(1, self._total_blocks),
            "current_consecutive_noise": self.consecutive_noise_frames,
            "threshold": self.threshold
        }

    def reset(self):
        """Reset detection counters"""
        self.consecutive_noise_frames = 0
        self._total_blocks = 0
        self._noisy_blocks = 0
        self.last_level = 0.0
