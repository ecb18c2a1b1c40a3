"""Audio-related data models."""

from dataclasses import dataclass

import numpy as np


@dataclass
class CaptureStats:
    """Ring capture statistics."""
    is_active: bool
    is_ready: bool
    capacity_frames: int
    cursor: int
    frames_written: int
    overflow_count: int
    sample_rate: int
    channels: int


@dataclass
class TrimmedClip:
    """An extracted utterance: interleaved float samples plus format metadata."""
    samples: np.ndarray
    frame_count: int
    channels: int
    sample_rate: int

    def __post_init__(self):
        if self.frame_count * self.channels != len(self.samples):
            raise ValueError(
                f"Clip has {len(self.samples)} samples, expected "
                f"{self.frame_count} frames x {self.channels} channels"
            )

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sample_rate
