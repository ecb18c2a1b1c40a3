"""Press-to-release recording sessions over the ring capture."""

import time
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..errors import NotReady
from ..models.audio import TrimmedClip
from .ring import RingCapture

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Push-to-talk session states."""
    IDLE = "idle"
    RECORDING = "recording"
    DISCARDED = "discarded"
    EXTRACTED = "extracted"


@dataclass
class RecordingSession:
    """One press-to-release interval against a RingCapture.

    The session is a value owned by whoever called ``begin``; ending it
    clears ``active`` regardless of outcome.
    """
    start_cursor: int
    start_timestamp: float
    sample_rate: int
    capacity: int
    active: bool = True
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    @classmethod
    def begin(cls, capture: RingCapture, pre_roll_seconds: float = 0.5) -> "RecordingSession":
        """Mark the start of an utterance, backtracking by the pre-roll.

        Raises:
            NotReady: If capture is inactive or has produced no audio yet
        """
        if not capture.is_active or not capture.is_ready:
            raise NotReady("Mic not ready yet")

        capacity = capture.capacity
        pre_roll_frames = int(round(pre_roll_seconds * capture.sample_rate))
        pre_roll_frames = min(max(pre_roll_frames, 0), max(0, capacity - 1))
        start_cursor = (capture.current_cursor() - pre_roll_frames) % capacity

        session = cls(
            start_cursor=start_cursor,
            start_timestamp=time.monotonic(),
            sample_rate=capture.sample_rate,
            capacity=capacity,
        )
        logger.debug(f"Session {session.session_id} started at frame {start_cursor} "
                     f"(pre-roll {pre_roll_frames} frames)")
        return session

    def end(self, capture: RingCapture, max_seconds: float = 10.0,
            min_seconds: float = 0.25) -> Optional[TrimmedClip]:
        """Close the session and extract the clip.

        Returns:
            The trimmed clip, or None when the utterance was shorter than
            min_seconds (a normal outcome) or the session was not active
        """
        if not self.active:
            logger.warning(f"Session {self.session_id} already ended")
            return None

        try:
            if capture.capacity != self.capacity or capture.sample_rate != self.sample_rate:
                logger.warning(f"Session {self.session_id}: ring was reconfigured, dropping session")
                return None

            stop_cursor = capture.current_cursor()
            frames_to_copy = (stop_cursor - self.start_cursor) % self.capacity

            max_frames = int(round(max_seconds * self.sample_rate))
            frames_to_copy = min(frames_to_copy, max_frames)

            duration = frames_to_copy / self.sample_rate
            if duration < min_seconds:
                logger.info(f"Session {self.session_id}: recording too short "
                            f"({duration:.3f}s < {min_seconds}s), ignored")
                return None

            samples = capture.extract(self.start_cursor, frames_to_copy)
            logger.debug(f"Session {self.session_id}: extracted {frames_to_copy} frames ({duration:.2f}s)")
            return TrimmedClip(
                samples=samples,
                frame_count=frames_to_copy,
                channels=capture.channels,
                sample_rate=self.sample_rate,
            )
        finally:
            self.active = False

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_timestamp


class PushToTalkRecorder:
    """Owns at most one active RecordingSession.

    A press while a session is already recording is rejected; the in-flight
    session keeps its start cursor.
    """

    def __init__(self,
                 capture: RingCapture,
                 pre_roll_seconds: float = 0.5,
                 max_record_seconds: float = 10.0,
                 min_record_seconds: float = 0.25,
                 on_state_change: Optional[Callable[[SessionState, SessionState], None]] = None):
        self.capture = capture
        self.pre_roll_seconds = pre_roll_seconds
        self.max_record_seconds = max_record_seconds
        self.min_record_seconds = min_record_seconds
        self.on_state_change = on_state_change

        self.state = SessionState.IDLE
        self.session: Optional[RecordingSession] = None

    @property
    def is_recording(self) -> bool:
        return self.state == SessionState.RECORDING

    def _transition(self, new_state: SessionState) -> None:
        old_state = self.state
        self.state = new_state
        logger.debug(f"Push-to-talk: {old_state.value} -> {new_state.value}")
        if self.on_state_change:
            self.on_state_change(old_state, new_state)

    def press(self) -> Optional[RecordingSession]:
        """Begin a session. Returns None if rejected or capture is not ready."""
        if self.session is not None and self.session.active:
            logger.warning(f"Press ignored: session {self.session.session_id} still recording")
            return None

        try:
            self.session = RecordingSession.begin(self.capture, self.pre_roll_seconds)
        except NotReady as e:
            logger.warning(f"Voice: {e}")
            return None

        self._transition(SessionState.RECORDING)
        logger.info("Voice: Recording started ...")
        return self.session

    def release(self) -> Optional[TrimmedClip]:
        """End the active session. Returns the clip or None if discarded."""
        session = self.session
        if session is None or not session.active:
            return None

        self.session = None
        clip = session.end(self.capture, self.max_record_seconds, self.min_record_seconds)
        self._transition(SessionState.EXTRACTED if clip is not None else SessionState.DISCARDED)
        self._transition(SessionState.IDLE)
        return clip
