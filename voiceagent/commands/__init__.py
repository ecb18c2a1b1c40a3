"""Command resolution and dispatch module."""

from .cache import CommandCache
from .heuristics import DEFAULT_RULES, NEGATION_MARKERS, build_rules, classify, normalize_command
from .resolver import COMMAND_SYSTEM_PROMPT, CommandEngine, CommandResolver
from .chatgpt_engine import ChatGPTCommandEngine
from .dispatcher import ActionDispatcher
from .publisher import ActionPublisher

__all__ = [
    "CommandCache",
    "DEFAULT_RULES",
    "NEGATION_MARKERS",
    "build_rules",
    "classify",
    "normalize_command",
    "COMMAND_SYSTEM_PROMPT",
    "CommandEngine",
    "CommandResolver",
    "ChatGPTCommandEngine",
    "ActionDispatcher",
    "ActionPublisher",
]
