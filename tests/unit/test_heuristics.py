"""Unit tests for the local keyword classifier."""

import pytest

from voiceagent.commands.heuristics import DEFAULT_RULES, build_rules, classify, normalize_command
from voiceagent.errors import UnknownAction
from voiceagent.models.commands import Action


@pytest.mark.unit
class TestNormalizeCommand:
    """Test cases for phrase normalization."""

    def test_trims_and_lowercases(self):
        """Test whitespace is trimmed and case folded."""
        assert normalize_command("  Follow ME \n") == "follow me"

    def test_none_and_blank(self):
        """Test missing input normalizes to an empty string."""
        assert normalize_command(None) == ""
        assert normalize_command("   ") == ""


@pytest.mark.unit
class TestClassify:
    """Test cases for classify()."""

    @pytest.mark.parametrize("text,expected", [
        ("stop right there", Action.STOP),
        ("freeze", Action.STOP),
        ("that's enough", Action.STOP),
        ("jump now", Action.JUMP),
        ("hop", Action.JUMP),
        ("follow me", Action.FOLLOW),
        ("come here", Action.FOLLOW),
        ("tail me please", Action.FOLLOW),
        ("back off", Action.BACKOFF),
        ("step back a little", Action.BACKOFF),
        ("relax", Action.IDLE),
        ("wait there", Action.IDLE),
    ])
    def test_keyword_matches(self, text, expected):
        """Test each action is reachable through its keywords."""
        assert classify(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("don't stop", Action.FOLLOW),
        ("do not jump", Action.IDLE),
        ("don't follow me", Action.STOP),
        ("do not back off", Action.FOLLOW),
        ("don't wait", Action.FOLLOW),
    ])
    def test_negation_uses_negated_action(self, text, expected):
        """Test a negation marker anywhere flips the rule to its negated action."""
        assert classify(text) == expected

    def test_priority_order(self):
        """Test the earlier rule wins when several keywords appear."""
        assert classify("stop and jump") == Action.STOP
        assert classify("jump then follow") == Action.JUMP
        assert classify("come back up") == Action.FOLLOW

    def test_substring_matching(self):
        """Test keywords match inside longer words."""
        assert classify("stopping") == Action.STOP

    def test_no_match(self):
        """Test unrelated text falls through."""
        assert classify("dance for me") is None

    def test_empty_text(self):
        """Test empty text never matches."""
        assert classify("") is None

    def test_expects_normalized_text(self):
        """Test classification is case sensitive on raw input."""
        assert classify("STOP") is None
        assert classify(normalize_command("STOP")) == Action.STOP


@pytest.mark.unit
class TestBuildRules:
    """Test cases for configurable keywords."""

    def test_no_overrides_returns_defaults(self):
        """Test defaults are returned untouched."""
        assert build_rules(None) is DEFAULT_RULES
        assert build_rules({}) is DEFAULT_RULES

    def test_override_replaces_keywords_only(self):
        """Test an override swaps keywords but keeps order and negation."""
        rules = build_rules({"jump": ["Spring", "bounce"]})

        assert [rule.action for rule in rules] == [rule.action for rule in DEFAULT_RULES]
        jump_rule = rules[1]
        assert jump_rule.keywords == ("spring", "bounce")
        assert jump_rule.negated_action == Action.IDLE
        assert classify("bounce", rules) == Action.JUMP
        assert classify("jump", rules) is None

    def test_unknown_action_rejected(self):
        """Test an override for an action outside the set is an error."""
        with pytest.raises(UnknownAction):
            build_rules({"DANCE": ["dance"]})
