"""Push-to-talk voice command service.

Ties the pipeline together around a single-threaded tick loop:

    press/release -> clip extraction (synchronous, on release)
                  -> transcription + resolution (worker event loop)
                  -> dispatch (on the next tick, on the caller's thread)

Remote calls never block the tick loop. Each submission returns a
``CommandTicket`` that can be cancelled; with ``cancel_stale`` enabled a new
submission cancels older in-flight tickets and drops their late results.
"""

import asyncio
import itertools
import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from ..audio.ring import RingCapture
from ..audio.session import PushToTalkRecorder
from ..audio.wav import save_wav
from ..commands.dispatcher import ActionDispatcher
from ..commands.heuristics import normalize_command
from ..commands.resolver import CommandResolver
from ..errors import (DeviceNotReady, EmptyCommand, RemoteResolutionFailure,
                      TranscriptionFailure)
from ..models.audio import TrimmedClip
from ..models.commands import Resolution
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.publisher import TranscriptionPublisher

logger = logging.getLogger(__name__)


@dataclass
class CommandOutcome:
    """What a submission produced, handed from the worker loop to tick()."""
    ticket_id: str
    sequence: int
    source: str  # "voice" or "text"
    transcript: Optional[str] = None
    resolution: Optional[Resolution] = None
    error: Optional[BaseException] = None
    cancelled: bool = False


class CommandTicket:
    """Handle on one in-flight transcription/resolution."""

    def __init__(self, ticket_id: str, sequence: int, source: str, future: Future):
        self.ticket_id = ticket_id
        self.sequence = sequence
        self.source = source
        self.future = future
        self._settled = threading.Event()

    def cancel(self) -> bool:
        """Cancel the remote work if it has not finished yet."""
        return self.future.cancel()

    @property
    def cancelled(self) -> bool:
        return self.future.cancelled()

    @property
    def done(self) -> bool:
        return self.future.done()

    def mark_settled(self) -> None:
        self._settled.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the outcome is queued for the next tick."""
        return self._settled.wait(timeout)


class VoiceCommandService:
    """Runs the voice command pipeline for one controlled agent."""

    def __init__(self,
                 capture: RingCapture,
                 backend: Optional[AbstractTranscriptionBackend],
                 resolver: CommandResolver,
                 dispatcher: ActionDispatcher,
                 pre_roll_seconds: float = 0.5,
                 max_record_seconds: float = 10.0,
                 min_record_seconds: float = 0.25,
                 cancel_stale: bool = False,
                 clip_directory: Optional[str] = None,
                 transcription_publisher: Optional[TranscriptionPublisher] = None):
        """Initialize voice command service.

        Args:
            capture: Ring capture the push-to-talk sessions read from
            backend: Speech-to-text backend; None disables voice input
            resolver: Command resolver
            dispatcher: Action dispatcher
            pre_roll_seconds: Audio kept from before the press
            max_record_seconds: Longest clip that is transcribed
            min_record_seconds: Shorter clips are discarded
            cancel_stale: Cancel older in-flight tickets on every new submission
            clip_directory: If set, every extracted clip is saved there as WAV
            transcription_publisher: Optional publisher for transcripts
        """
        self.capture = capture
        self.backend = backend
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.cancel_stale = cancel_stale
        self.clip_directory = Path(clip_directory) if clip_directory else None
        self.transcription_publisher = transcription_publisher

        self.recorder = PushToTalkRecorder(
            capture,
            pre_roll_seconds=pre_roll_seconds,
            max_record_seconds=max_record_seconds,
            min_record_seconds=min_record_seconds,
        )

        self.voice_enabled = False
        self.outcomes: "queue.Queue[CommandOutcome]" = queue.Queue()
        self.pending: Dict[str, CommandTicket] = {}
        self.lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._latest_sequence = 0

        # Worker event loop for remote calls
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.loop_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start the worker loop and the capture device.

        Returns:
            True if voice input is available. Typed commands work either way.
        """
        self._start_loop()

        if self.backend is None:
            logger.warning("No transcription backend configured; voice input disabled")
            return False

        if not self.capture.start():
            return False

        try:
            self.capture.wait_until_ready()
        except DeviceNotReady as e:
            logger.warning(f"Voice capture disabled: {e}")
            self.capture.stop()
            return False

        self.voice_enabled = True
        return True

    def _start_loop(self) -> None:
        if self.loop_thread is not None and self.loop_thread.is_alive():
            return
        self.loop = asyncio.new_event_loop()
        self.loop_thread = threading.Thread(target=self._run_loop, daemon=True)
        self.loop_thread.name = "VoiceCommandLoop"
        self.loop_thread.start()
        logger.debug("Voice command worker loop started")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()
            logger.debug("Voice command worker loop closed")

    def shutdown(self, timeout: float = 2.0) -> None:
        """Stop capture, cancel outstanding work and stop the worker loop."""
        logger.info("Shutting down voice command service")
        self.voice_enabled = False
        self.capture.stop()
        self.cancel_pending("service shutting down")

        if self.loop is not None and self.loop_thread is not None:
            self.loop.call_soon_threadsafe(self.loop.stop)
            self.loop_thread.join(timeout)
            if self.loop_thread.is_alive():
                logger.warning("Voice command worker loop did not stop cleanly")
        self.loop_thread = None

        if self.backend is not None:
            self.backend.cleanup()

    # ------------------------------------------------------------------
    # Gestures and submissions
    # ------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    def press(self) -> bool:
        """Push-to-talk key pressed. Returns True if a session started."""
        if not self.voice_enabled:
            logger.warning("Voice: Mic not ready yet.")
            return False
        return self.recorder.press() is not None

    def release(self) -> Optional[CommandTicket]:
        """Push-to-talk key released: extract the clip and submit it."""
        clip = self.recorder.release()
        if clip is None:
            return None

        if self.clip_directory is not None:
            self._save_clip(clip)

        return self._submit("voice", lambda ticket_id, sequence: self._transcribe_and_resolve(ticket_id, sequence, clip))

    def submit_text(self, command: str) -> Optional[CommandTicket]:
        """Submit a typed command; it skips transcription."""
        if not normalize_command(command):
            logger.info("Ignoring empty typed command")
            return None
        logger.info(f"Sending command to agent: {command}")
        return self._submit("text", lambda ticket_id, sequence: self._resolve(ticket_id, sequence, "text", command))

    def _save_clip(self, clip: TrimmedClip) -> None:
        filename = f"clip_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.wav"
        try:
            save_wav(clip, self.clip_directory / filename)
        except OSError as e:
            logger.error(f"Could not save clip: {e}")

    def _submit(self, source: str,
                make_coro: Callable[[str, int], Awaitable[CommandOutcome]]) -> CommandTicket:
        if self.loop is None:
            raise RuntimeError("VoiceCommandService is not started")

        if self.cancel_stale:
            self.cancel_pending("superseded by a newer command")

        sequence = next(self._sequence)
        ticket_id = f"{source}_{sequence}"
        self._latest_sequence = sequence

        future = asyncio.run_coroutine_threadsafe(make_coro(ticket_id, sequence), self.loop)
        ticket = CommandTicket(ticket_id, sequence, source, future)
        with self.lock:
            self.pending[ticket_id] = ticket
        future.add_done_callback(lambda f: self._on_ticket_done(ticket, f))
        logger.debug(f"Submitted {ticket_id}")
        return ticket

    def cancel_pending(self, reason: str) -> int:
        """Cancel every in-flight ticket. Returns how many were cancelled."""
        with self.lock:
            tickets = list(self.pending.values())
        cancelled = sum(1 for ticket in tickets if ticket.cancel())
        if cancelled:
            logger.info(f"Cancelled {cancelled} in-flight command(s): {reason}")
        return cancelled

    def _on_ticket_done(self, ticket: CommandTicket, future: Future) -> None:
        with self.lock:
            self.pending.pop(ticket.ticket_id, None)

        if future.cancelled():
            outcome = CommandOutcome(ticket.ticket_id, ticket.sequence, ticket.source, cancelled=True)
        elif future.exception() is not None:
            outcome = CommandOutcome(ticket.ticket_id, ticket.sequence, ticket.source,
                                     error=future.exception())
        else:
            outcome = future.result()

        self.outcomes.put(outcome)
        ticket.mark_settled()

    # ------------------------------------------------------------------
    # Worker-loop coroutines
    # ------------------------------------------------------------------

    async def _transcribe_and_resolve(self, ticket_id: str, sequence: int,
                                     clip: TrimmedClip) -> CommandOutcome:
        try:
            result = await self.backend.transcribe_clip(ticket_id, clip)
        except TranscriptionFailure as e:
            return CommandOutcome(ticket_id, sequence, "voice", error=e)

        if self.transcription_publisher:
            self.transcription_publisher.publish_transcription_result(result)

        text = (result.text or "").strip()
        if not text:
            return CommandOutcome(ticket_id, sequence, "voice",
                                  error=TranscriptionFailure("Empty transcription"))

        logger.info(f"Voice: Transcribed -> {text}")
        return await self._resolve(ticket_id, sequence, "voice", text)

    async def _resolve(self, ticket_id: str, sequence: int, source: str, text: str) -> CommandOutcome:
        try:
            resolution = await self.resolver.resolve(text)
        except (EmptyCommand, RemoteResolutionFailure) as e:
            return CommandOutcome(ticket_id, sequence, source, transcript=text, error=e)
        return CommandOutcome(ticket_id, sequence, source, transcript=text, resolution=resolution)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """Dispatch every outcome that completed since the last tick.

        Returns:
            Number of dispatches performed
        """
        dispatched = 0
        while True:
            try:
                outcome = self.outcomes.get_nowait()
            except queue.Empty:
                break
            if self._handle_outcome(outcome):
                dispatched += 1
        return dispatched

    def _handle_outcome(self, outcome: CommandOutcome) -> bool:
        if outcome.cancelled:
            logger.info(f"{outcome.ticket_id}: cancelled, nothing dispatched")
            return False

        if self.cancel_stale and outcome.sequence < self._latest_sequence:
            logger.info(f"{outcome.ticket_id}: superseded by a newer command, dropped")
            return False

        if outcome.resolution is not None:
            logger.info(f"{outcome.ticket_id}: {outcome.transcript!r} => {outcome.resolution.token} "
                        f"({outcome.resolution.tier.value})")
            self.dispatcher.dispatch(outcome.resolution.token)
            return True

        error = outcome.error
        if isinstance(error, RemoteResolutionFailure):
            self.dispatcher.dispatch_fallback(str(error))
            return True
        if isinstance(error, TranscriptionFailure):
            logger.error(f"{outcome.ticket_id}: transcription failed: {error}")
        elif isinstance(error, EmptyCommand):
            logger.info(f"{outcome.ticket_id}: empty command, nothing dispatched")
        else:
            logger.error(f"{outcome.ticket_id}: unexpected failure: {error!r}", exc_info=error)
        return False
