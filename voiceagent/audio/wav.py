"""PCM16 WAV serialization for trimmed clips."""

import io
import wave
import logging
from pathlib import Path
from typing import Union

import numpy as np

from ..models.audio import TrimmedClip

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
PCM16_MAX = 32767


def float_to_pcm16(samples) -> np.ndarray:
    """Quantize float samples to little-endian int16, clamping to [-1, 1]."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    return np.round(clipped * PCM16_MAX).astype('<i2')


def encode_wav(clip: TrimmedClip) -> bytes:
    """Serialize a clip as a RIFF/WAVE file with a 44-byte PCM16 header."""
    pcm = float_to_pcm16(clip.samples)

    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(clip.channels)
        wf.setsampwidth(2)
        wf.setframerate(clip.sample_rate)
        wf.writeframes(pcm.tobytes())
    return buffer.getvalue()


def save_wav(clip: TrimmedClip, filepath: Union[str, Path]) -> Path:
    """Save a clip to a WAV file, creating parent directories.

    Returns:
        Path of the written file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_wav(clip))
    logger.info(f"Clip saved to {path} ({clip.duration_seconds:.2f}s)")
    return path
