"""Keyboard input for push-to-talk and typed commands."""

from .keyboard_input import InputEvent, InputSuppressor, PushToTalkKeyListener, TextCommandPrompt

__all__ = [
    "InputEvent",
    "InputSuppressor",
    "PushToTalkKeyListener",
    "TextCommandPrompt",
]
