"""
Tests for line classification, one rule at a time.
"""
import pytest

from factbot.parser import (
    CommandKind,
    classify,
    parse_ask_peer,
    parse_peer_reply,
    parse_question,
    parse_teach,
)


# ── Peer protocol ─────────────────────────────────────────────


def test_peer_reply_line():
    parsed = parse_peer_reply(":INFOBOT:REPLY abc123 water =is=> wet")
    assert parsed.kind is CommandKind.PEER_REPLY
    assert parsed.token == "abc123"
    assert parsed.payload == "water =is=> wet"


def test_peer_lines_are_recognised_when_not_addressed():
    assert classify(":INFOBOT:REPLY t1 x =is=> y", addressed=False).kind is CommandKind.PEER_REPLY
    parsed = classify(":INFOBOT:QUERY t2 water", addressed=False)
    assert parsed.kind is CommandKind.PEER_QUERY
    assert (parsed.token, parsed.subject) == ("t2", "water")


# ── Commands ──────────────────────────────────────────────────


def test_forget():
    parsed = classify("forget Water")
    assert parsed.kind is CommandKind.FORGET
    assert parsed.subject == "Water"


def test_ask_peer():
    parsed = parse_ask_peer("ask otherbot about water?")
    assert parsed.kind is CommandKind.ASK_PEER
    assert (parsed.peer, parsed.subject) == ("otherbot", "water")


def test_search_terms():
    parsed = classify("search for red  apple")
    assert parsed.kind is CommandKind.SEARCH
    assert parsed.terms == ("red", "apple")


@pytest.mark.parametrize(
    "text, kind, setting, value",
    [
        ("settings", CommandKind.SHOW_SETTINGS, "", ""),
        ("set passive_ask 1", CommandKind.SET_SETTING, "passive_ask", "1"),
        ("set ask to <@U2>", CommandKind.SET_SETTING, "ask", "<@U2>"),
        ("unset stopwords", CommandKind.SET_SETTING, "stopwords", ""),
    ],
)
def test_settings_commands(text, kind, setting, value):
    parsed = classify(text)
    assert parsed.kind is kind
    assert (parsed.setting, parsed.value) == (setting, value)


def test_commands_need_addressing():
    assert classify("forget water", addressed=False).kind is CommandKind.UNRECOGNIZED
    assert classify("help", addressed=False).kind is CommandKind.UNRECOGNIZED
    # falls through to teaching instead
    assert classify("forget it is fine", addressed=False).kind is CommandKind.TEACH


# ── Questions ─────────────────────────────────────────────────


def test_question_strips_question_marks():
    parsed = parse_question("water???")
    assert parsed.subject == "water"
    assert parsed.literal is False


def test_literal_question():
    parsed = parse_question("literal water ?")
    assert parsed.subject == "water"
    assert parsed.literal is True


def test_bare_question_mark_is_not_a_question():
    assert parse_question("?") is None
    assert classify("??").kind is CommandKind.UNRECOGNIZED


# ── Teaching ──────────────────────────────────────────────────


def test_teach_is():
    parsed = parse_teach("water is wet")
    assert parsed.kind is CommandKind.TEACH
    assert (parsed.subject, parsed.relation, parsed.facts) == ("water", "is", ("wet",))
    assert not parsed.replace and not parsed.also


def test_teach_are_and_case_insensitive_relation():
    parsed = parse_teach("Cats ARE fluffy")
    assert (parsed.subject, parsed.relation) == ("Cats", "are")


def test_teach_subject_is_shortest_prefix():
    parsed = parse_teach("the sky is what is above")
    assert parsed.subject == "the sky"
    assert parsed.facts == ("what is above",)


def test_is_wins_over_are():
    parsed = parse_teach("cats are what this is about")
    assert parsed.subject == "cats are what this"
    assert parsed.relation == "is"


def test_replace_and_also_modifiers():
    parsed = parse_teach("no, water is dry")
    assert parsed.subject == "water"
    assert parsed.replace is True

    parsed = parse_teach("No water is dry")
    assert parsed.subject == "water"
    assert parsed.replace is True

    parsed = parse_teach("water is also blue")
    assert parsed.facts == ("blue",)
    assert parsed.also is True


def test_words_starting_with_no_are_not_a_correction():
    parsed = parse_teach("nobody is home")
    assert parsed.subject == "nobody"
    assert parsed.replace is False


def test_description_splits_into_alternatives():
    assert parse_teach("dice is one or two or three").facts == ("one", "two", "three")
    assert parse_teach("dice is one|two|three").facts == ("one", "two", "three")
    # only the standalone word splits
    assert parse_teach("job is work for oranges").facts == ("work for oranges",)


def test_not_a_statement():
    assert parse_teach("hello there") is None
    assert classify("hello there").kind is CommandKind.UNRECOGNIZED
