"""Command resolution data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..errors import UnknownAction


class Action(Enum):
    """Closed set of actions the controlled agent understands."""
    FOLLOW = "FOLLOW"
    STOP = "STOP"
    JUMP = "JUMP"
    IDLE = "IDLE"
    BACKOFF = "BACKOFF"

    @classmethod
    def parse(cls, token: str) -> "Action":
        """Parse a resolver token into an Action.

        Raises:
            UnknownAction: If the normalized token is not a member.
        """
        normalized = (token or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownAction(token) from None


class ResolutionTier(Enum):
    """Which stage of the resolver produced an answer."""
    CACHE = "cache"
    HEURISTIC = "heuristic"
    REMOTE = "remote"


@dataclass(frozen=True)
class HeuristicRule:
    """Keyword rule; negation markers in the text yield negated_action instead."""
    action: Action
    keywords: Tuple[str, ...]
    negated_action: Action


@dataclass
class Resolution:
    """Result of resolving one phrase."""
    command: str
    key: str
    token: str
    tier: ResolutionTier
    processing_time: float = 0.0
