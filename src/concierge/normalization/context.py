"""
Context scoring for candidate time tokens.

Looks at the words around a token such as "19-30" and decides how likely it
is to be a clock time rather than a range, a duration, a head count or a
calendar date.
"""
import re
from dataclasses import dataclass
from typing import Pattern

from ..config import policy
from ..config.locales import TimeVocabulary

_WORD_RE = re.compile(r"[^\W\d_]+(?:['’][^\W\d_]+)*")

# How far back a time indicator ("at", "um", "vers") may sit
INDICATOR_WINDOW_WORDS = 3

_TAIL_CHARS = 48


@dataclass(frozen=True)
class TimeContext:
    confidence: float
    is_likely_date: bool = False
    is_explicit_range: bool = False
    has_time_units: bool = False
    has_quantity_context: bool = False
    has_trailing_quantity: bool = False
    has_time_indicator: bool = False


def ends_with(pattern: Pattern[str], text: str) -> bool:
    """True when a phrase of `pattern` is the last thing before the token."""
    stripped = text.rstrip(" \t,:")
    tail = stripped[-_TAIL_CHARS:]
    return any(m.end() == len(tail) for m in pattern.finditer(tail))


def starts_with(pattern: Pattern[str], text: str) -> bool:
    """True when a phrase of `pattern` directly follows the token."""
    return pattern.match(text.lstrip(" \t,")) is not None


def has_indicator_before(vocab: TimeVocabulary, before: str) -> bool:
    words = list(_WORD_RE.finditer(before))
    if not words:
        return False
    window = before[words[-INDICATOR_WINDOW_WORDS:][0].start():]
    return vocab.time_indicator_re.search(window) is not None


def is_plausible_date(first: int, second: int) -> bool:
    """'25-12' or '12.25' read as day/month: one side over 12, the other a month."""
    if not (first > 12 or second > 12):
        return False
    return 1 <= first <= 31 and 1 <= second <= 12


def analyze_time_context(
    text: str,
    start: int,
    end: int,
    vocab: TimeVocabulary,
    hour: int,
    minute: int,
    check_date: bool = False,
) -> TimeContext:
    """
    Score the token text[start:end] as a clock time.

    Starts from BASE_TIME_CONFIDENCE, adds the indicator and dinner-hour
    bonuses and subtracts range, unit, quantity and date penalties. A date
    reading is only penalized when no time indicator precedes the token.

    Returns:
        TimeContext with the clamped confidence and the flags that drove it
    """
    before = text[:start]
    after = text[end:]

    has_indicator = has_indicator_before(vocab, before)
    is_range = ends_with(vocab.range_re, before) or starts_with(vocab.range_re, after)
    has_units = starts_with(vocab.unit_re, after)
    has_quantity = ends_with(vocab.quantity_re, before)
    has_trailing_quantity = starts_with(vocab.trailing_quantity_re, after)
    is_date = check_date and not has_indicator and is_plausible_date(hour, minute)

    confidence = policy.BASE_TIME_CONFIDENCE
    if has_indicator:
        confidence += policy.TIME_INDICATOR_BONUS
    if is_range:
        confidence -= policy.RANGE_PENALTY
    if has_units:
        confidence -= policy.UNIT_PENALTY
    if has_quantity:
        confidence -= policy.QUANTITY_PENALTY
    if is_date:
        confidence -= policy.DATE_PENALTY
    low, high = policy.DINNER_HOURS
    if low <= hour <= high:
        confidence += policy.DINNER_HOURS_BONUS

    return TimeContext(
        confidence=round(max(0.0, min(1.0, confidence)), 3),
        is_likely_date=is_date,
        is_explicit_range=is_range,
        has_time_units=has_units,
        has_quantity_context=has_quantity,
        has_trailing_quantity=has_trailing_quantity,
        has_time_indicator=has_indicator,
    )
