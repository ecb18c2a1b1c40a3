"""OpenAI Whisper API transcription backend."""

import time
import logging
from datetime import datetime

import aiohttp

from .base import AbstractTranscriptionBackend
from ..audio.wav import encode_wav
from ..errors import TranscriptionFailure
from ..models.audio import TrimmedClip
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class WhisperApiBackend(AbstractTranscriptionBackend):
    """Uploads WAV-encoded clips to the OpenAI transcription endpoint."""

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 language: str = "en-US",
                 base_url: str = "https://api.openai.com/v1/audio/transcriptions"):
        super().__init__(language)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.service_name = "OpenAI Whisper"

    def initialize(self) -> bool:
        if not self.api_key:
            logger.error("OpenAI API key is not set; Whisper transcription unavailable")
            return False
        logger.info(f"Whisper backend initialized with model: {self.model}")
        return True

    async def transcribe_clip(self, clip_id: str, clip: TrimmedClip) -> TranscriptionResult:
        """Transcribe a clip with a single multipart upload."""
        if not self.api_key:
            raise TranscriptionFailure("API key is not set")

        start_time = time.time()
        wav_bytes = encode_wav(clip)
        logger.debug(f"Clip ID: {clip_id}; WAV size: {len(wav_bytes)} bytes; "
                     f"duration: {clip.duration_seconds:.2f}s")

        form = aiohttp.FormData()
        form.add_field("model", self.model)
        # Whisper expects ISO-639-1, e.g. "en" for "en-US"
        form.add_field("language", self.language.split("-")[0])
        form.add_field("file", wav_bytes, filename="audio.wav", content_type="audio/wav")
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranscriptionFailure(
                            f"Transcription failed (clip={clip_id}): {response.status} - {error_text}")
                    payload = await response.json()
        except aiohttp.ClientError as e:
            raise TranscriptionFailure(f"Transcription request failed (clip={clip_id}): {e}") from e

        text = payload.get("text") if isinstance(payload, dict) else None
        if text is None:
            raise TranscriptionFailure(f"Transcription response has no text (clip={clip_id})")

        processing_time = time.time() - start_time
        logger.debug(f"Transcript='{text}' ({processing_time:.3f}s)")
        return TranscriptionResult(
            text=text.strip(),
            confidence=1.0,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            clip_id=clip_id,
            audio_duration=clip.duration_seconds,
        )

    def cleanup(self) -> None:
        pass
