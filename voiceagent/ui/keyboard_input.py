"""Push-to-talk keyboard gestures and the typed command prompt."""

import queue
import threading
import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class InputEvent(Enum):
    """Gestures delivered to the tick loop."""
    PRESS = "press"
    RELEASE = "release"
    TOGGLE_TEXT = "toggle_text"


class InputSuppressor(Protocol):
    """Narrow capability for pausing gesture input, e.g. while typing."""

    def suppress_input(self, suppressed: bool) -> None:
        ...


class PushToTalkKeyListener:
    """Turns global key events into push-to-talk gestures.

    Events are queued from the pynput thread and drained by the tick loop with
    ``poll_events``. While suppressed, new presses and text toggles are
    ignored; releasing a key that is already held still ends its gesture.
    """

    def __init__(self, record_key: str = "v", text_key: Optional[str] = "t"):
        """Initialize key listener.

        Args:
            record_key: Hold to record, release to submit
            text_key: Opens the typed command prompt, None to disable
        """
        self.record_key = record_key.lower()
        self.text_key = text_key.lower() if text_key else None
        self.events: "queue.Queue[InputEvent]" = queue.Queue()
        self.listener = None
        self.suppressed = False
        self._held = False
        self.lock = threading.Lock()

    def start(self) -> None:
        """Start listening for global key events."""
        if self.listener is not None:
            return
        # Imported here: pynput needs a display server on Linux
        from pynput import keyboard

        self.listener = keyboard.Listener(on_press=self._on_key_press, on_release=self._on_key_release)
        self.listener.start()
        logger.info(f"Push-to-talk listener started (hold '{self.record_key}' to talk)")

    def stop(self) -> None:
        """Stop listening."""
        if self.listener is None:
            return
        self.listener.stop()
        self.listener = None
        logger.info("Push-to-talk listener stopped")

    def suppress_input(self, suppressed: bool) -> None:
        with self.lock:
            self.suppressed = suppressed
        logger.debug(f"Gesture input {'suppressed' if suppressed else 'restored'}")

    def poll_events(self) -> List[InputEvent]:
        """Drain gestures received since the last poll."""
        events = []
        while True:
            try:
                events.append(self.events.get_nowait())
            except queue.Empty:
                return events

    @staticmethod
    def _key_name(key) -> Optional[str]:
        char = getattr(key, 'char', None)
        if char:
            return char.lower()
        return getattr(key, 'name', None)

    def _on_key_press(self, key) -> None:
        name = self._key_name(key)
        with self.lock:
            if self.suppressed:
                return
            if name == self.record_key:
                # Held keys auto-repeat; only the first press counts
                if self._held:
                    return
                self._held = True
                self.events.put(InputEvent.PRESS)
            elif self.text_key is not None and name == self.text_key:
                self.events.put(InputEvent.TOGGLE_TEXT)

    def _on_key_release(self, key) -> None:
        name = self._key_name(key)
        with self.lock:
            if name == self.record_key and self._held:
                self._held = False
                self.events.put(InputEvent.RELEASE)


class TextCommandPrompt:
    """Reads one typed command on a helper thread.

    Gesture input is suppressed while the prompt is open so that typed
    letters do not trigger push-to-talk.
    """

    def __init__(self,
                 on_submit: Callable[[str], None],
                 suppressor: Optional[InputSuppressor] = None,
                 prompt: str = "command> ",
                 input_func: Callable[[str], str] = input):
        self.on_submit = on_submit
        self.suppressor = suppressor
        self.prompt = prompt
        self.input_func = input_func
        self.thread: Optional[threading.Thread] = None

    @property
    def is_open(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def open(self) -> None:
        """Open the prompt unless it is already open."""
        if self.is_open:
            return
        self.thread = threading.Thread(target=self._read_command, daemon=True)
        self.thread.name = "TextCommandPrompt"
        self.thread.start()

    def _read_command(self) -> None:
        if self.suppressor:
            self.suppressor.suppress_input(True)
        try:
            text = self.input_func(self.prompt).strip()
        except (EOFError, KeyboardInterrupt):
            text = ""
        finally:
            if self.suppressor:
                self.suppressor.suppress_input(False)

        if text:
            self.on_submit(text)
        else:
            logger.debug("Text prompt closed without a command")
