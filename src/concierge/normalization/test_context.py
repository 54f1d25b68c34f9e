#!/usr/bin/env python3
"""
Isolated tests for context scoring of candidate time tokens.
"""
import pytest

from concierge.config import load_locale_registry
from concierge.normalization.context import analyze_time_context, is_plausible_date


@pytest.fixture(scope="module")
def en_vocab():
    return load_locale_registry().get("en").time


def _score(text, token, vocab, check_date=True):
    start = text.index(token)
    hour, minute = (int(part) for part in token.replace(".", "-").split("-"))
    return analyze_time_context(text, start, start + len(token), vocab, hour, minute,
                                check_date=check_date)


def test_indicator_and_dinner_hours(en_vocab):
    ctx = _score("table for 4 at 19-30", "19-30", en_vocab)
    assert ctx.has_time_indicator
    assert not ctx.has_quantity_context
    assert ctx.confidence == pytest.approx(1.0)


def test_range_word_before_token(en_vocab):
    ctx = _score("between 19-20", "19-20", en_vocab)
    assert ctx.is_explicit_range
    assert ctx.confidence == pytest.approx(0.3)


def test_range_word_after_token(en_vocab):
    ctx = _score("19-20 or later", "19-20", en_vocab)
    assert ctx.is_explicit_range


def test_unit_word_after_token(en_vocab):
    ctx = _score("takes 1-30 minutes", "1-30", en_vocab)
    assert ctx.has_time_units
    assert ctx.confidence == pytest.approx(0.0)


def test_quantity_word_must_be_adjacent(en_vocab):
    adjacent = _score("table for 19-30", "19-30", en_vocab)
    distant = _score("table for 4 people 19-30", "19-30", en_vocab)
    assert adjacent.has_quantity_context
    assert not distant.has_quantity_context


def test_indicator_window_is_three_words(en_vocab):
    near = _score("at our place 19-30", "19-30", en_vocab)
    far = _score("at the little place downtown 19-30", "19-30", en_vocab)
    assert near.has_time_indicator
    assert not far.has_time_indicator


def test_indicator_is_a_whole_word(en_vocab):
    ctx = _score("that 19-30", "19-30", en_vocab)
    assert not ctx.has_time_indicator


def test_date_reading_without_indicator(en_vocab):
    ctx = _score("arriving 14-06", "14-06", en_vocab)
    assert ctx.is_likely_date
    assert ctx.confidence == pytest.approx(0.1)


def test_indicator_overrides_date_reading(en_vocab):
    ctx = _score("at 14-06", "14-06", en_vocab)
    assert not ctx.is_likely_date


def test_date_check_is_optional(en_vocab):
    ctx = _score("arriving 14-06", "14-06", en_vocab, check_date=False)
    assert not ctx.is_likely_date


@pytest.mark.parametrize("first,second,expected", [
    (25, 12, True),
    (14, 6, True),
    (6, 14, False),
    (5, 5, False),
    (32, 1, False),
    (19, 30, False),
])
def test_is_plausible_date(first, second, expected):
    assert is_plausible_date(first, second) is expected
