"""Continuously recording ring buffer fed by a PyAudio input stream."""

import time
import logging
from typing import Optional

import numpy as np
import pyaudio

from ..errors import DeviceUnavailable, DeviceNotReady
from ..models.audio import CaptureStats

logger = logging.getLogger(__name__)


class RingCapture:
    """Fixed-capacity circular audio buffer that keeps recording while capture runs.

    The device callback is the only writer. Readers pull data out with
    ``extract``, which copies and never blocks the writer. Anything older than
    one full lap of the ring has been overwritten and must not be relied on.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        loop_seconds: float = 30,
        chunk_size: int = 1024,
        device_index: Optional[int] = None,
    ):
        """Initialize ring capture.

        Args:
            sample_rate: Audio sample rate in Hz
            channels: Number of interleaved channels
            loop_seconds: Length of the ring in seconds
            chunk_size: Frames per device callback
            device_index: PyAudio input device index, None for the default device
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.loop_seconds = loop_seconds
        self.chunk_size = chunk_size
        self.device_index = device_index

        self.is_active = False
        self.overflow_count = 0

        # PyAudio resources, only held while capture runs
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

        self._allocate()

    def _allocate(self) -> None:
        self.capacity = int(self.loop_seconds * self.sample_rate)
        if self.capacity <= 0:
            raise ValueError(f"Ring capacity must be positive, got {self.capacity} frames")
        self.buffer = np.zeros((self.capacity, self.channels), dtype=np.float32)
        self.frames_written = 0

    @property
    def is_ready(self) -> bool:
        """True once at least one frame has been written."""
        return self.frames_written > 0

    def start(
        self,
        device_index: Optional[int] = None,
        sample_rate: Optional[int] = None,
        loop_seconds: Optional[float] = None,
    ) -> bool:
        """Start continuous recording into the ring.

        A missing capture device is not fatal: it is logged as a warning and
        capture simply stays inactive.

        Returns:
            True if the input stream is running, False otherwise
        """
        if self.is_active:
            logger.warning("Ring capture already running")
            return True

        if device_index is not None:
            self.device_index = device_index
        if sample_rate is not None:
            self.sample_rate = sample_rate
        if loop_seconds is not None:
            self.loop_seconds = loop_seconds
        self._allocate()
        self.overflow_count = 0

        try:
            self.stream = self.__open_audio_stream()
        except DeviceUnavailable as e:
            logger.warning(f"Voice capture disabled: {e}")
            self._release_device()
            return False

        self.is_active = True
        logger.info(f"Ring capture started: {self.sample_rate}Hz, {self.channels} channel(s), "
                    f"{self.loop_seconds}s loop ({self.capacity} frames)")
        return True

    def __open_audio_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            if self.device_index is None:
                device_info = self.pyaudio_instance.get_default_input_device_info()
            else:
                device_info = self.pyaudio_instance.get_device_info_by_index(self.device_index)
        except OSError as e:
            raise DeviceUnavailable(f"No audio input device found: {e}") from e

        if int(device_info.get('maxInputChannels', 0)) < 1:
            raise DeviceUnavailable(f"Device '{device_info.get('name')}' has no input channels")

        try:
            stream = self.pyaudio_instance.open(
                format=pyaudio.paFloat32,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_audio,
            )
        except OSError as e:
            raise DeviceUnavailable(f"Could not open input stream on '{device_info.get('name')}': {e}") from e

        logger.info(f"Audio stream opened on '{device_info.get('name')}': "
                    f"{self.chunk_size} frames/callback")
        return stream

    def _on_audio(self, in_data, frame_count, time_info, status):
        """PyAudio stream callback: append the chunk to the ring."""
        if status:
            self.overflow_count += 1
        if in_data:
            self.write(np.frombuffer(in_data, dtype=np.float32))
        return (None, pyaudio.paContinue)

    def write(self, samples) -> None:
        """Append interleaved samples at the write cursor, wrapping at capacity.

        A write longer than the ring keeps only its newest lap.
        """
        frames = np.asarray(samples, dtype=np.float32).reshape(-1, self.channels)
        total = len(frames)
        if total == 0:
            return

        skipped = max(0, total - self.capacity)
        if skipped:
            frames = frames[skipped:]

        cursor = (self.frames_written + skipped) % self.capacity
        count = len(frames)
        first = min(count, self.capacity - cursor)
        self.buffer[cursor:cursor + first] = frames[:first]
        if count > first:
            self.buffer[:count - first] = frames[first:]

        self.frames_written += total

    def current_cursor(self) -> int:
        """Next frame to be overwritten, in [0, capacity)."""
        return self.frames_written % self.capacity

    def wait_until_ready(self, max_attempts: int = 200, poll_interval: float = 0.01) -> int:
        """Poll until the device has produced at least one frame.

        Returns:
            The current cursor

        Raises:
            DeviceNotReady: If no frame arrived within max_attempts polls
        """
        attempts = 0
        while not self.is_ready and attempts < max_attempts:
            attempts += 1
            time.sleep(poll_interval)

        if not self.is_ready:
            raise DeviceNotReady(f"Microphone produced no audio after {max_attempts} polls")

        logger.info("Mic ready (rolling buffer)")
        return self.current_cursor()

    def extract(self, start_frame: int, frame_count: int) -> np.ndarray:
        """Copy frame_count frames starting at start_frame, wrapping past the end.

        Returns:
            Flat interleaved float32 array of frame_count * channels samples
        """
        if not 0 <= start_frame < self.capacity:
            raise ValueError(f"start_frame {start_frame} outside ring [0, {self.capacity})")
        if not 0 <= frame_count <= self.capacity:
            raise ValueError(f"frame_count {frame_count} outside [0, {self.capacity}]")

        tail = min(frame_count, self.capacity - start_frame)
        head = frame_count - tail

        segments = [self.buffer[start_frame:start_frame + tail]]
        if head > 0:
            segments.append(self.buffer[:head])
        return np.concatenate(segments).reshape(-1)

    def stop(self) -> None:
        """Release the capture device. Safe to call more than once."""
        if not self.is_active and self.stream is None and self.pyaudio_instance is None:
            return
        self.is_active = False
        self._release_device()
        logger.info(f"Ring capture stopped after {self.frames_written} frames "
                    f"({self.overflow_count} overflows)")

    def _release_device(self) -> None:
        try:
            if self.stream is not None:
                self.stream.stop_stream()
                self.stream.close()
        finally:
            self.stream = None
            if self.pyaudio_instance is not None:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_capture_stats(self) -> CaptureStats:
        """Get current capture statistics."""
        return CaptureStats(
            is_active=self.is_active,
            is_ready=self.is_ready,
            capacity_frames=self.capacity,
            cursor=self.current_cursor(),
            frames_written=self.frames_written,
            overflow_count=self.overflow_count,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )

    def __del__(self):
        """Ensure the device is released on deletion."""
        if self.is_active:
            self.stop()
