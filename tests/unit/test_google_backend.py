"""Unit tests for GoogleSpeechBackend."""

import asyncio
from types import SimpleNamespace

import pytest
from unittest.mock import Mock
from google.api_core import exceptions as gax_exceptions
from google.cloud import speech

from voiceagent.errors import TranscriptionFailure
from voiceagent.transcription.google_backend import GoogleSpeechBackend


def recognize_response(*transcripts):
    results = [
        SimpleNamespace(alternatives=[SimpleNamespace(transcript=text, confidence=0.9)])
        for text in transcripts
    ]
    return SimpleNamespace(results=results)


@pytest.mark.unit
class TestGoogleSpeechBackend:
    """Test cases for GoogleSpeechBackend with a mocked client."""

    def test_requires_credentials_path(self):
        """Test the backend cannot be built without credentials."""
        with pytest.raises(ValueError):
            GoogleSpeechBackend(None)

    def test_not_initialized(self, sine_clip):
        """Test transcribing before initialize() fails cleanly."""
        backend = GoogleSpeechBackend("/tmp/creds.json")

        with pytest.raises(TranscriptionFailure):
            asyncio.run(backend.transcribe_clip("voice_1", sine_clip()))

    def test_recognition_config(self, sine_clip):
        """Test the request config follows the clip format."""
        backend = GoogleSpeechBackend("/tmp/creds.json", language="de-DE")
        config = backend._build_config(sine_clip(sample_rate=8000, channels=2))

        assert config.encoding == speech.RecognitionConfig.AudioEncoding.LINEAR16
        assert config.sample_rate_hertz == 8000
        assert config.audio_channel_count == 2
        assert config.language_code == "de-DE"

    def test_transcribe_clip(self, sine_clip):
        """Test the first alternative becomes the transcript."""
        backend = GoogleSpeechBackend("/tmp/creds.json")
        backend.client = Mock()
        backend.client.recognize.return_value = recognize_response(" jump ")

        result = asyncio.run(backend.transcribe_clip("voice_1", sine_clip()))

        assert result.text == "jump"
        assert result.confidence == 0.9
        assert result.service == "Google Speech-to-Text"
        assert backend.client.recognize.call_args.kwargs['timeout'] == 5.0

    def test_no_speech(self, sine_clip):
        """Test an empty response yields an empty transcript."""
        backend = GoogleSpeechBackend("/tmp/creds.json")
        backend.client = Mock()
        backend.client.recognize.return_value = recognize_response()

        result = asyncio.run(backend.transcribe_clip("voice_1", sine_clip()))

        assert result.text == ""
        assert result.confidence == 0.0

    def test_deadline_exceeded(self, sine_clip):
        """Test API errors become TranscriptionFailure."""
        backend = GoogleSpeechBackend("/tmp/creds.json")
        backend.client = Mock()
        backend.client.recognize.side_effect = gax_exceptions.DeadlineExceeded("too slow")

        with pytest.raises(TranscriptionFailure, match="timeout"):
            asyncio.run(backend.transcribe_clip("voice_1", sine_clip()))
