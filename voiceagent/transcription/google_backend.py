"""Google Speech-to-Text transcription backend."""

import time
import asyncio
import logging
import functools
from datetime import datetime
from typing import Optional

from .base import AbstractTranscriptionBackend
from ..audio.wav import float_to_pcm16
from ..errors import TranscriptionFailure
from ..models.audio import TrimmedClip
from ..models.transcription import TranscriptionResult

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 language: str = "en-US",
                 enable_automatic_punctuation: bool = False,
                 request_timeout: float = 5.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code (e.g., 'en-US', 'es-ES')
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: Per-request deadline in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self.client = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    def _build_config(self, clip: TrimmedClip) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=clip.sample_rate,
            audio_channel_count=clip.channels,
            language_code=self.language,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            # Push-to-talk utterances are a few words long
            model="latest_short",
        )

    async def transcribe_clip(self, clip_id: str, clip: TrimmedClip) -> TranscriptionResult:
        """Transcribe a clip using Google Speech-to-Text."""
        if self.client is None:
            raise TranscriptionFailure("Google Speech backend is not initialized")

        start_time = time.time()
        audio = speech.RecognitionAudio(content=float_to_pcm16(clip.samples).tobytes())
        config = self._build_config(clip)

        logger.debug(f"Clip ID: {clip_id}; {clip.frame_count} frames at {clip.sample_rate}Hz; "
                     f"Language: {self.language}")

        recognize = functools.partial(self.client.recognize, config=config, audio=audio,
                                      timeout=self.request_timeout)
        try:
            response = await asyncio.get_running_loop().run_in_executor(None, recognize)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded for clip %s", clip_id)
            raise TranscriptionFailure(f"Google Speech recognize timeout (clip={clip_id}): {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for clip %s", clip_id)
            raise TranscriptionFailure(f"Google Speech service unavailable (clip={clip_id}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for clip %s: %s", clip_id, e)
            raise TranscriptionFailure(f"Google Speech API error (clip={clip_id}): {e}") from e
        processing_time = time.time() - start_time

        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            text, confidence = "", 0.0
        else:
            alternative = response.results[0].alternatives[0]
            text, confidence = alternative.transcript, alternative.confidence
            logger.debug(f"Transcript='{text}' (conf={confidence})")

        return TranscriptionResult(
            text=text.strip(),
            confidence=confidence,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            clip_id=clip_id,
            audio_duration=clip.duration_seconds,
        )

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
