"""
Time-Expression Normalizer

Rewrites informal or mistyped clock times in a guest message into canonical
zero-padded "HH:MM" before the message reaches the booking model:

    "table for 4 at 19-30"    -> "table for 4 at 19:30"
    "around 7pm"              -> "around 19:00"
    "um halb 8"               -> "um 07:30"

Ambiguous tokens are scored against the surrounding words (see context.py)
and only rewritten when the score clears the acceptance threshold, so ranges
("between 19-20"), durations ("for 1.5 hours"), head counts and dates stay
as the guest wrote them.
"""
import logging
import re
from typing import Callable, List, Match, Optional, Pattern, Tuple

from ..config import config, policy
from ..config.locales import LocaleRegistry, SpokenForm, TimeVocabulary
from ..logging_config import log_function_call
from .context import analyze_time_context, ends_with, has_indicator_before, starts_with
from .models import NormalizationResult, PatternKind, TimeChange

logger = logging.getLogger(__name__)

# A token must not be glued to a longer numeric run on either side:
# "2024-05-12", "19:30", "1.25.3" and "+14155550100" never yield candidates.
_BEFORE = r"(?<![\w:.,\-])"
_AFTER = r"(?![\w:]|[.,\-]\d)"

DASH_DOT_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}})[-.](\d{{2}}){_AFTER}")
SPACE_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}})[ \t]+(\d{{2}}){_AFTER}")
COMMA_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}}),(\d{{2}}){_AFTER}")
H_MARKER_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}})[hH](\d{{2}})?(?![\w:])")
AMPM_PATTERN = re.compile(
    rf"{_BEFORE}(\d{{1,2}})(?:[:.](\d{{2}}))?\s*([ap](?:\.\s?m\.?|m))(?!\w)",
    re.IGNORECASE,
)
HALF_HOUR_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}})\.5{_AFTER}")
RANGE_PATTERN = re.compile(rf"{_BEFORE}(\d{{2}})-(\d{{2}}){_AFTER}")
DECIMAL_PATTERN = re.compile(rf"{_BEFORE}(\d{{1,2}})\.(\d{{2}}){_AFTER}")

# Cheap locale-independent hints used by has_time_patterns()
_TIME_HINTS = (
    re.compile(r"\d{1,2}[-.:,]\d{2}"),
    re.compile(r"\d{1,2}\s+\d{2}"),
    re.compile(r"\d{1,2}h(?:\d{2})?(?!\w)", re.IGNORECASE),
    re.compile(r"\d{1,2}\s*[ap]\.?\s?m\b", re.IGNORECASE),
    re.compile(r"\d{1,2}\s*o['’]?clock", re.IGNORECASE),
    re.compile(r"\d{1,2}\.5(?!\d)"),
)

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

# (end of rewritten span, replacement, confidence) or None to leave the match alone
Decision = Optional[Tuple[int, str, float]]


def format_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def is_valid_clock(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def has_time_patterns(message: str) -> bool:
    """Quick check whether a message contains anything that looks like a time."""
    if not message:
        return False
    return any(p.search(message) for p in _TIME_HINTS)


def is_reasonable_restaurant_time(value: str) -> bool:
    """True for a valid "HH:MM" inside dining hours (06:00-23:59)."""
    match = _CLOCK_PATTERN.match(value or "")
    if not match:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    low, high = policy.DINING_HOURS
    return is_valid_clock(hour, minute) and low <= hour <= high


class TimeNormalizer:
    """
    Locale-aware normalizer for clock times in free text.

    The registry is shared and read-only; a normalizer holds no per-message
    state and can be used from any number of sessions at once.

    Example:
        >>> normalizer = TimeNormalizer(load_locale_registry())
        >>> normalizer.normalize("table for 4 at 19-30").normalized_message
        'table for 4 at 19:30'
    """

    def __init__(self, registry: LocaleRegistry, acceptance_threshold: Optional[float] = None):
        if acceptance_threshold is None:
            acceptance_threshold = config.TIME_ACCEPTANCE_THRESHOLD
        if not 0.0 <= acceptance_threshold <= 1.0:
            raise ValueError(
                f"acceptance_threshold must be between 0 and 1, got {acceptance_threshold}")
        self.registry = registry
        self.acceptance_threshold = acceptance_threshold

    @log_function_call()
    def normalize(
        self,
        message: str,
        locale: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> NormalizationResult:
        """
        Run the rewrite pipeline over a message.

        Steps run in a fixed order and each step sees the output of the
        previous ones: dash/dot typos, space typos, comma typos, explicit
        markers (h, am/pm, o'clock words), spoken forms, "N.5" shorthand,
        reversed ranges, then decimal times for locales that write them.

        Args:
            message: Raw guest message
            locale: Locale code ("en", "de-AT", ...); unknown codes use the default
            session_id: Only used to tag log lines

        Returns:
            NormalizationResult with the rewritten message and one TimeChange
            per rewritten span
        """
        if not message:
            return NormalizationResult(normalized_message=message or "")

        tables = self.registry.get(locale)
        vocab = tables.time
        changes: List[TimeChange] = []

        text = message
        text = self._apply(text, DASH_DOT_PATTERN, PatternKind.DASH_DOT_TYPO, changes,
                           lambda m, t: self._dash_dot(m, t, vocab))
        text = self._apply(text, SPACE_PATTERN, PatternKind.SPACE_TYPO, changes,
                           lambda m, t: self._space(m, t, vocab))
        text = self._apply(text, COMMA_PATTERN, PatternKind.COMMA_TYPO, changes, _comma)
        text = self._apply(text, H_MARKER_PATTERN, PatternKind.H_MARKER, changes,
                           lambda m, t: _h_marker(m, t, vocab))
        text = self._apply(text, AMPM_PATTERN, PatternKind.AMPM_MARKER, changes,
                           lambda m, t: _ampm(m, t, vocab))
        text = self._apply(text, vocab.oclock_re, PatternKind.OCLOCK_MARKER, changes,
                           lambda m, t: _oclock(m, t, vocab))
        for form in vocab.spoken_forms:
            text = self._apply(text, form.pattern, PatternKind.SPOKEN_FORM, changes,
                               lambda m, t, form=form: _spoken(m, form))
        text = self._apply(text, HALF_HOUR_PATTERN, PatternKind.HALF_HOUR_SHORTHAND, changes,
                           lambda m, t: _half_hour(m, t, vocab))
        text = self._apply(text, RANGE_PATTERN, PatternKind.RANGE_DISAMBIGUATION, changes,
                           lambda m, t: self._range(m, t, vocab))
        if vocab.decimal_time:
            text = self._apply(text, DECIMAL_PATTERN, PatternKind.LOCALE_DECIMAL, changes,
                               lambda m, t: _locale_decimal(m, t, vocab))

        if changes and config.LOG_NORMALIZATION_CHANGES:
            logger.info(
                "Time normalization applied",
                extra={
                    "session_id": session_id,
                    "locale": tables.locale,
                    "changes_count": len(changes),
                    "high_confidence_changes": sum(
                        1 for c in changes if c.confidence >= policy.HIGH_CONFIDENCE),
                    "pattern_kinds": sorted({c.pattern_kind.value for c in changes}),
                    "changes": [c.to_dict() for c in changes],
                },
            )

        return NormalizationResult(
            normalized_message=text,
            changes=changes,
            has_time_patterns=bool(changes) or has_time_patterns(text),
        )

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(
        text: str,
        pattern: Pattern[str],
        kind: PatternKind,
        changes: List[TimeChange],
        decide: Callable[[Match, str], Decision],
    ) -> str:
        """
        Rewrite every accepted match of `pattern` in one left-to-right pass.

        A rejected match does not consume its text: scanning resumes one
        character after its start, so "4 19 30" can still yield "19 30".
        """
        parts: List[str] = []
        last = pos = 0
        while pos <= len(text):
            match = pattern.search(text, pos)
            if match is None:
                break
            decision = decide(match, text)
            if decision is None:
                pos = match.start() + 1
                continue
            end, replacement, confidence = decision
            parts.append(text[last:match.start()])
            parts.append(replacement)
            changes.append(TimeChange(
                original=text[match.start():end],
                normalized=replacement,
                pattern_kind=kind,
                confidence=confidence,
            ))
            last = pos = end
        parts.append(text[last:])
        return "".join(parts)

    # ------------------------------------------------------------------
    # Context-scored steps
    # ------------------------------------------------------------------

    def _dash_dot(self, match: Match, text: str, vocab: TimeVocabulary) -> Decision:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not is_valid_clock(hour, minute):
            return None
        ctx = analyze_time_context(text, match.start(), match.end(), vocab,
                                   hour, minute, check_date=True)
        if ctx.has_time_units or ctx.is_likely_date:
            return None
        if ctx.confidence <= self.acceptance_threshold:
            return None
        return match.end(), format_clock(hour, minute), ctx.confidence

    def _space(self, match: Match, text: str, vocab: TimeVocabulary) -> Decision:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not is_valid_clock(hour, minute):
            return None
        ctx = analyze_time_context(text, match.start(), match.end(), vocab, hour, minute)
        # "4 30 minutes", "7 20 people"
        if ctx.has_time_units or ctx.has_trailing_quantity:
            return None
        if ctx.confidence <= self.acceptance_threshold:
            return None
        return match.end(), format_clock(hour, minute), ctx.confidence

    def _range(self, match: Match, text: str, vocab: TimeVocabulary) -> Decision:
        first, second = int(match.group(1)), int(match.group(2))
        if not (first > second and first <= 23 and second <= 59):
            return None
        ctx = analyze_time_context(text, match.start(), match.end(), vocab,
                                   first, second, check_date=True)
        if ctx.has_time_units or ctx.confidence <= self.acceptance_threshold:
            return None
        return match.end(), format_clock(first, second), ctx.confidence


# ----------------------------------------------------------------------
# Fixed-confidence steps
# ----------------------------------------------------------------------

def _comma(match: Match, text: str) -> Decision:
    hour, minute = int(match.group(1)), int(match.group(2))
    if not is_valid_clock(hour, minute):
        return None
    return match.end(), format_clock(hour, minute), policy.COMMA_CONFIDENCE


def _h_marker(match: Match, text: str, vocab: TimeVocabulary) -> Decision:
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if not is_valid_clock(hour, minute):
        return None
    # "for 2h" is a duration
    if ends_with(vocab.quantity_re, text[:match.start()]):
        return None
    return match.end(), format_clock(hour, minute), policy.MARKER_CONFIDENCE


def _ampm(match: Match, text: str, vocab: TimeVocabulary) -> Decision:
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    marker = re.sub(r"[\s.]", "", match.group(3)).lower()
    if match.group(2) is None and marker in vocab.meridiem_stopwords:
        return None
    if hour > 23 or minute > 59:
        return None
    if marker == "pm":
        if hour < 12:
            hour += 12
    elif hour == 12:
        hour = 0
    elif hour > 12:
        # "14am" is contradictory
        return None
    return match.end(), format_clock(hour, minute), policy.MARKER_CONFIDENCE


def _oclock(match: Match, text: str, vocab: TimeVocabulary) -> Decision:
    hour = int(match.group(1))
    if hour > 23:
        return None
    word = match.group(2)
    before = text[:match.start()]
    # Russian "на 2 часа" is a duration unless a time preposition precedes it
    if vocab.unit_re.fullmatch(word) and not has_indicator_before(vocab, before):
        return None

    end, minute = match.end(), 0
    if match.group(3) is not None:
        after = text[match.end():]
        trailing_count = (starts_with(vocab.trailing_quantity_re, after)
                          or starts_with(vocab.unit_re, after))
        if int(match.group(3)) <= 59 and not trailing_count:
            minute = int(match.group(3))
        else:
            # "8 o'clock 20 people": the number belongs to what follows
            end = match.end(2)
    return end, format_clock(hour, minute), policy.MARKER_CONFIDENCE


def _spoken(match: Match, form: SpokenForm) -> Decision:
    hour = int(match.group("hour"))
    if hour > 24:
        return None
    hour = (hour + form.hour_offset) % 24
    return match.end(), format_clock(hour, form.minute), form.confidence


def _half_hour(match: Match, text: str, vocab: TimeVocabulary) -> Decision:
    hour = int(match.group(1))
    if hour > 23:
        return None
    # "1.5 hours"
    if starts_with(vocab.unit_re, text[match.end():]):
        return None
    return match.end(), format_clock(hour, 30), policy.HALF_HOUR_CONFIDENCE


def _locale_decimal(match: Match, text: str, vocab: TimeVocabulary) -> Decision:
    hour, minute = int(match.group(1)), int(match.group(2))
    low, high = policy.DINING_HOURS
    if not (low <= hour <= high and minute <= 59):
        return None
    ctx = analyze_time_context(text, match.start(), match.end(), vocab,
                               hour, minute, check_date=True)
    if ctx.has_time_units or ctx.is_likely_date:
        return None
    return match.end(), format_clock(hour, minute), policy.LOCALE_DECIMAL_CONFIDENCE
