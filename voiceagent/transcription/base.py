"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.audio import TrimmedClip
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe_clip(self, clip_id: str, clip: TrimmedClip) -> TranscriptionResult:
        """Transcribe a clip and return the result.

        Args:
            clip_id: Identifier used in logs and on the result
            clip: Extracted utterance

        Returns:
            TranscriptionResult with transcription and metadata

        Raises:
            TranscriptionFailure: If the service call fails
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
