"""Tests for debatebot/triggers.py."""

import pytest

from debatebot.triggers import match_trigger, mention_subject


@pytest.mark.parametrize(
    ("text", "subject"),
    [
        ("debate me pineapple on pizza", "pineapple on pizza"),
        ("Debate Me  tabs   vs spaces ", "tabs vs spaces"),
        ("let's fight about vim", "vim"),
        ("lets fight about emacs", "emacs"),
        ("fight me on nuclear power", "nuclear power"),
        ("ARGUE WITH ME ABOUT free will", "free will"),
        ("debate me\nmultiline\nsubject", "multiline subject"),
    ],
)
def test_triggers_match(text, subject):
    assert match_trigger(text) == subject


@pytest.mark.parametrize(
    "text",
    ["please debate me on x", "debate me", "fight me", "hello", ""],
)
def test_non_triggers(text):
    assert match_trigger(text) is None


def test_mention_uses_trailing_text():
    assert mention_subject("is cereal a soup") == "is cereal a soup"


def test_mention_with_trigger_phrase():
    assert mention_subject("debate me cereal soup") == "cereal soup"


def test_mention_without_text():
    assert mention_subject("   ") is None


def test_subject_length_capped():
    assert len(match_trigger("debate me " + "z" * 1000)) == 300
