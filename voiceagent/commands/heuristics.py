"""Local keyword classifier, tried before any remote call."""

import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..models.commands import Action, HeuristicRule

logger = logging.getLogger(__name__)

NEGATION_MARKERS: Tuple[str, ...] = ("don't", "do not")

# Order is priority: the first matching rule wins.
DEFAULT_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(Action.STOP, ("stop", "freeze", "halt", "hold", "quit", "enough"), Action.FOLLOW),
    HeuristicRule(Action.JUMP, ("jump", "leap", "hop"), Action.IDLE),
    HeuristicRule(Action.FOLLOW, ("follow", "come", "chase", "tail me"), Action.STOP),
    HeuristicRule(Action.BACKOFF, ("back off", "backoff", "back up", "backup", "step back"), Action.FOLLOW),
    HeuristicRule(Action.IDLE, ("idle", "relax", "rest", "chill", "wait", "standby"), Action.FOLLOW),
)


def normalize_command(command: Optional[str]) -> str:
    """Trim and lower-case a command phrase."""
    return (command or "").strip().lower()


def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase.lower() in text for phrase in phrases)


def classify(normalized_text: str,
             rules: Sequence[HeuristicRule] = DEFAULT_RULES,
             negation_markers: Sequence[str] = NEGATION_MARKERS) -> Optional[Action]:
    """Classify already-normalized text with an ordered rule table.

    Keywords match as substrings. If any negation marker appears anywhere in
    the text, the matching rule yields its negated action.

    Returns:
        The action of the first matching rule, or None if nothing matched
    """
    if not normalized_text:
        return None

    negated = _contains_any(normalized_text, negation_markers)
    for rule in rules:
        if _contains_any(normalized_text, rule.keywords):
            return rule.negated_action if negated else rule.action
    return None


def build_rules(keyword_overrides: Optional[Dict[str, Sequence[str]]] = None) -> Tuple[HeuristicRule, ...]:
    """Default rule table with per-action keyword sets replaced from config.

    Priority order and negated actions are fixed; only keywords change.
    """
    if not keyword_overrides:
        return DEFAULT_RULES

    overrides = {Action.parse(name): tuple(str(k).lower() for k in keywords)
                 for name, keywords in keyword_overrides.items()}
    rules = tuple(
        HeuristicRule(rule.action, overrides.get(rule.action, rule.keywords), rule.negated_action)
        for rule in DEFAULT_RULES
    )
    logger.info(f"Heuristic keywords overridden for: {', '.join(a.value for a in overrides)}")
    return rules
