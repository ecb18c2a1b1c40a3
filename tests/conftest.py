"""Pytest configuration and fixtures for voiceagent tests."""

import pytest
import tempfile
import logging
from unittest.mock import Mock, patch
import numpy as np

from voiceagent.audio.ring import RingCapture
from voiceagent.models.audio import TrimmedClip


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that need a real microphone"
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: tests spanning several components")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-hardware"):
        return
    skip_hardware = pytest.mark.skip(reason="needs --run-hardware")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'index': 0,
            'name': 'Mock Microphone',
            'maxInputChannels': 1,
        }
        mock_pyaudio_instance.get_device_info_by_index.return_value = {
            'index': 3,
            'name': 'Mock USB Microphone',
            'maxInputChannels': 2,
        }

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def ramp_samples():
    """Samples whose value encodes their position, for checking extraction order."""
    def generate(count, start=0):
        return (np.arange(start, start + count, dtype=np.float32) / 100000.0)

    return generate


@pytest.fixture
def live_capture():
    """RingCapture that behaves as if its device were running.

    Tests feed it with ``write`` instead of a PyAudio callback.
    """
    capture = RingCapture(sample_rate=1000, channels=1, loop_seconds=2)
    capture.is_active = True
    yield capture
    capture.is_active = False


@pytest.fixture
def sine_clip():
    """Half a second of 440 Hz tone as a TrimmedClip."""
    def generate(duration_seconds=0.5, sample_rate=16000, channels=1, amplitude=0.5):
        frames = int(duration_seconds * sample_rate)
        t = np.linspace(0, duration_seconds, frames, False)
        tone = (amplitude * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
        samples = np.repeat(tone, channels)
        return TrimmedClip(samples=samples, frame_count=frames, channels=channels, sample_rate=sample_rate)

    return generate


class FakeTranscriptionBackend:
    """Backend that returns canned transcripts without network access."""

    service_name = "Fake STT"

    def __init__(self, transcripts=None, error=None):
        self.transcripts = list(transcripts or [])
        self.error = error
        self.clips = []

    def initialize(self):
        return True

    async def transcribe_clip(self, clip_id, clip):
        from voiceagent.models.transcription import TranscriptionResult
        self.clips.append(clip)
        if self.error is not None:
            raise self.error
        text = self.transcripts.pop(0) if self.transcripts else ""
        return TranscriptionResult(
            text=text,
            confidence=1.0,
            processing_time=0.0,
            timestamp=None,
            service=self.service_name,
            clip_id=clip_id,
            audio_duration=clip.duration_seconds,
        )

    def cleanup(self):
        pass


class FakeCommandEngine:
    """Remote engine double that records calls and returns canned replies."""

    def __init__(self, reply="IDLE", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def send_command(self, command, system_prompt):
        self.calls.append((command, system_prompt))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_backend():
    return FakeTranscriptionBackend


@pytest.fixture
def fake_engine():
    return FakeCommandEngine
