"""Tests for debatebot/scoring.py, one row per rule."""

import pytest

from debatebot.scoring import NON_SUBSTANTIVE_RULES, is_non_substantive, matching_rule


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("ok", "acknowledgement"),
        ("OKAY", "acknowledgement"),
        ("  whatever  ", "acknowledgement"),
        ("nah", "acknowledgement"),
        ("i dont care", "concession"),
        ("I don't care", "concession"),
        ("you win", "concession"),
        ("nevermind", "concession"),
        ("haha", "laughter"),
        ("XDDDD", "laughter"),
        ("rofl", "laughter"),
        ("...", "ellipsis"),
        (".", "ellipsis"),
        ("ok but consider this", None),
        ("hahaha", None),
        ("x d", None),
    ],
)
def test_rule_table(message, expected):
    # min_length=0 isolates the pattern rules from the length rule
    assert matching_rule(message, min_length=0) == expected


@pytest.mark.parametrize("message", [None, "", "   "])
def test_empty_messages(message):
    assert matching_rule(message) in ("empty", "too_short")
    assert is_non_substantive(message)


def test_short_message_is_non_substantive():
    assert matching_rule("no you are wrong") == "too_short"


def test_length_measured_after_trimming():
    assert matching_rule("   short but padded      ") == "too_short"


def test_substantive_message():
    msg = "Dogs have been bred for cooperation with humans for fifteen thousand years."
    assert matching_rule(msg) is None
    assert not is_non_substantive(msg)


def test_rules_are_named_and_unique():
    names = [rule.name for rule in NON_SUBSTANTIVE_RULES]
    assert len(names) == len(set(names))
