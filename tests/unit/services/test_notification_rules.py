"""
Unit tests for the notification rule engine.

Covers:
- Scope gating by channel and talkgroup
- Suppression precedence over pattern and phrase matches
- Whole-word, order-sensitive phrase matching
- One mention per recipient
"""

import pytest

from trunkbot.config.builtin_config import VERSUS_PATTERN
from trunkbot.services.notification_rules import extract_mentions
from tests.utils import RuleFactory


@pytest.mark.unit
class TestScopeGate:

    def test_rule_scoped_to_other_channel_never_fires(self) -> None:
        rule = RuleFactory.create_rule("U1", channels=["berkeley"], include=["shots fired"], regex="shots")

        assert extract_mentions("shots fired shots fired", "ucpd", 3605, [rule]) == []

    def test_channel_scope(self) -> None:
        rule = RuleFactory.create_rule("U1", channels=["ucpd"], include=["shots fired"])

        assert extract_mentions("Shots fired near Sproul", "ucpd", 1, [rule]) == ["<@U1>"]

    def test_talkgroup_scope(self) -> None:
        rule = RuleFactory.create_rule("U1", talkgroups=[3605], include=["shots fired"])

        assert extract_mentions("shots fired", "anything", 3605, [rule]) == ["<@U1>"]
        assert extract_mentions("shots fired", "anything", 3606, [rule]) == []

    def test_rule_without_scope_never_fires(self) -> None:
        rule = RuleFactory.create_rule("U1", include=["shots fired"])

        assert extract_mentions("shots fired", "ucpd", 3605, [rule]) == []


@pytest.mark.unit
class TestSuppression:

    @pytest.fixture
    def weapon_rule(self):
        return RuleFactory.create_rule(
            "U1", channels=["ucpd"], include=["weapon"], not_regex=r"no (weapon|gun)s?"
        )

    def test_suppression_wins_over_phrase(self, weapon_rule) -> None:
        assert extract_mentions("no weapons seen", "ucpd", 1, [weapon_rule]) == []

    def test_phrase_fires_without_negation(self, weapon_rule) -> None:
        assert extract_mentions("weapon seen", "ucpd", 1, [weapon_rule]) == ["<@U1>"]

    def test_suppression_wins_over_regex(self) -> None:
        rule = RuleFactory.create_rule("U1", channels=["ucpd"], regex="gun", not_regex="no gun")

        assert extract_mentions("No gun visible", "ucpd", 1, [rule]) == []

    def test_suppression_is_case_insensitive(self, weapon_rule) -> None:
        assert extract_mentions("NO WEAPON", "ucpd", 1, [weapon_rule]) == []


@pytest.mark.unit
class TestPatternMatch:

    @pytest.fixture
    def versus_rule(self):
        return RuleFactory.create_rule("U1", channels=["ucpd"], regex=VERSUS_PATTERN)

    @pytest.mark.parametrize("text", [
        "vehicle versus bicyclist at Bancroft and Channing",
        "Car vs. pedestrian, Telegraph",
        "report of a bike verses auto",
    ])
    def test_versus_phrasing_fires(self, versus_rule, text) -> None:
        assert extract_mentions(text, "ucpd", 1, [versus_rule]) == ["<@U1>"]

    def test_unrelated_text_does_not_fire(self, versus_rule) -> None:
        assert extract_mentions("welfare check on Durant", "ucpd", 1, [versus_rule]) == []


@pytest.mark.unit
class TestPhraseMatch:

    @pytest.fixture
    def auto_ped_rule(self):
        return RuleFactory.create_rule("U1", channels=["berkeley"], include=["auto ped"])

    def test_adjacent_words_fire(self, auto_ped_rule) -> None:
        assert extract_mentions("auto ped involved", "berkeley", 1, [auto_ped_rule]) == ["<@U1>"]

    def test_partial_words_do_not_fire(self, auto_ped_rule) -> None:
        assert extract_mentions("automobile pedestrian involved", "berkeley", 1, [auto_ped_rule]) == []

    def test_reversed_order_does_not_fire(self, auto_ped_rule) -> None:
        assert extract_mentions("ped auto involved", "berkeley", 1, [auto_ped_rule]) == []

    def test_separated_words_do_not_fire(self, auto_ped_rule) -> None:
        assert extract_mentions("auto, then another ped", "berkeley", 1, [auto_ped_rule]) == []

    def test_punctuation_between_words_is_ignored(self, auto_ped_rule) -> None:
        assert extract_mentions("Auto, ped at Ashby.", "berkeley", 1, [auto_ped_rule]) == ["<@U1>"]

    def test_radio_codes_with_hyphens(self) -> None:
        rule = RuleFactory.create_rule("U1", channels=["berkeley"], include=["11-80"])

        assert extract_mentions("Copy, 11-80 at Shattuck", "berkeley", 1, [rule]) == ["<@U1>"]
        assert extract_mentions("Copy, 11 80 at Shattuck", "berkeley", 1, [rule]) == []


@pytest.mark.unit
class TestMentionAggregation:

    def test_recipient_mentioned_once(self) -> None:
        rules = [
            RuleFactory.create_rule("U1", channels=["ucpd"], include=["fire"]),
            RuleFactory.create_rule("U1", talkgroups=[3605], include=["smoke"]),
        ]

        assert extract_mentions("fire and smoke", "ucpd", 3605, rules) == ["<@U1>"]

    def test_independent_rules_union_scope(self) -> None:
        rules = [
            RuleFactory.create_rule("U1", channels=["berkeley"], include=["fire"]),
            RuleFactory.create_rule("U1", channels=["ucpd"], include=["smoke"]),
        ]

        assert extract_mentions("smoke", "ucpd", 1, rules) == ["<@U1>"]
        assert extract_mentions("smoke", "berkeley", 1, rules) == []

    def test_multiple_recipients_in_rule_order(self) -> None:
        rules = [
            RuleFactory.create_rule("UA", channels=["ucpd"], include=["fire"]),
            RuleFactory.create_rule("UB", channels=["ucpd"], include=["fire"]),
        ]

        assert extract_mentions("structure fire", "ucpd", 1, rules) == ["<@UA>", "<@UB>"]

    def test_empty_transcript(self) -> None:
        rule = RuleFactory.create_rule("U1", channels=["ucpd"], include=["fire"])

        assert extract_mentions("", "ucpd", 1, [rule]) == []
