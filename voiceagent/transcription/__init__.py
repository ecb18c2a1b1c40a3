"""Speech-to-text backends for voiceagent."""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptionResult
from .whisper_backend import WhisperApiBackend
from .publisher import TranscriptionPublisher

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionResult",
    "WhisperApiBackend",
    "TranscriptionPublisher",
]
