"""Three-tier command resolver: cache, local heuristics, remote model."""

import time
import logging
from typing import Optional, Protocol, Sequence

from ..errors import EmptyCommand, RemoteResolutionFailure
from ..models.commands import HeuristicRule, Resolution, ResolutionTier
from .cache import CommandCache
from .heuristics import DEFAULT_RULES, NEGATION_MARKERS, classify, normalize_command

logger = logging.getLogger(__name__)

COMMAND_SYSTEM_PROMPT = (
    "Given a user command, respond with one action name from: FOLLOW, STOP, JUMP, IDLE, BACKOFF. "
    "Infer intent and choose the best action. If ambiguous, infer from context.\n\n"
    "Output: The action word (uppercase), with no explanation or punctuation.\n"
    "Only use the allowed actions.\n"
    "No extra text."
)


class CommandEngine(Protocol):
    """Protocol for remote engines that turn a command into an action token."""

    async def send_command(self, command: str, system_prompt: str) -> str:
        """Send the command under the system prompt and return the reply."""
        ...


class CommandResolver:
    """Maps free text to one action token, preferring cheap deterministic answers."""

    def __init__(self,
                 engine: Optional[CommandEngine] = None,
                 cache: Optional[CommandCache] = None,
                 rules: Sequence[HeuristicRule] = DEFAULT_RULES,
                 negation_markers: Sequence[str] = NEGATION_MARKERS,
                 system_prompt: str = COMMAND_SYSTEM_PROMPT,
                 cache_heuristic_matches: bool = True):
        """Initialize command resolver.

        Args:
            engine: Remote fallback; without one, unmatched phrases fail
            cache: Shared phrase cache, a new one if not given
            rules: Ordered heuristic rule table
            negation_markers: Phrases that flip a rule to its negated action
            system_prompt: Fixed instruction sent with every remote call
            cache_heuristic_matches: Also cache answers from the heuristic tier
        """
        self.engine = engine
        self.cache = cache if cache is not None else CommandCache()
        self.rules = tuple(rules)
        self.negation_markers = tuple(negation_markers)
        self.system_prompt = system_prompt
        self.cache_heuristic_matches = cache_heuristic_matches
        self.remote_calls = 0

    async def resolve(self, command: str) -> Resolution:
        """Resolve a command phrase to an action token.

        Raises:
            EmptyCommand: If the phrase is empty after trimming
            RemoteResolutionFailure: If no tier produced an answer
        """
        start_time = time.time()
        key = normalize_command(command)
        if not key:
            raise EmptyCommand("No command text to resolve")

        cached = self.cache.lookup(key)
        if cached is not None:
            logger.info(f"Cache hit: {command!r} => {cached}")
            return Resolution(command, key, cached, ResolutionTier.CACHE, time.time() - start_time)

        action = classify(key, self.rules, self.negation_markers)
        if action is not None:
            logger.info(f"Local parse: {command!r} => {action.value}")
            if self.cache_heuristic_matches:
                self.cache.store(key, action.value)
            return Resolution(command, key, action.value, ResolutionTier.HEURISTIC, time.time() - start_time)

        token = await self._resolve_remote(command)
        self.cache.store(key, token)
        return Resolution(command, key, token, ResolutionTier.REMOTE, time.time() - start_time)

    async def _resolve_remote(self, command: str) -> str:
        if self.engine is None:
            raise RemoteResolutionFailure(f"No remote command engine configured for {command!r}")

        logger.info(f"LLM parse: {command!r}")
        self.remote_calls += 1
        try:
            reply = await self.engine.send_command(command, self.system_prompt)
        except RemoteResolutionFailure:
            raise
        except Exception as e:
            raise RemoteResolutionFailure(f"Remote resolution failed: {e}") from e

        token = (reply or "").strip().upper()
        if not token:
            raise RemoteResolutionFailure(f"Empty reply for {command!r}")
        logger.info(f"LLM reply: {command!r} => {token}")
        return token
