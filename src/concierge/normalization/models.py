"""
Data structures produced by the time-expression normalizer.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class PatternKind(str, Enum):
    """Which rewrite step produced a change."""
    DASH_DOT_TYPO = "dash_dot_typo"
    SPACE_TYPO = "space_typo"
    COMMA_TYPO = "comma_typo"
    H_MARKER = "h_marker"
    AMPM_MARKER = "ampm_marker"
    OCLOCK_MARKER = "oclock_marker"
    SPOKEN_FORM = "spoken_form"
    HALF_HOUR_SHORTHAND = "half_hour_shorthand"
    RANGE_DISAMBIGUATION = "range_disambiguation"
    LOCALE_DECIMAL = "locale_decimal"


@dataclass(frozen=True)
class TimeChange:
    """
    One rewritten span.

    Attributes:
        original: Text of the span as this step saw it (e.g. "19-30"). When
            steps chain, this is the previous step's output: "8 30 pm"
            records "8 30" -> "08:30", then "08:30 pm" -> "20:30".
        normalized: Replacement text, always "HH:MM"
        pattern_kind: Step that produced the rewrite
        confidence: Confidence score (0.0 to 1.0)
    """
    original: str
    normalized: str
    pattern_kind: PatternKind
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0 and 1, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original,
            "normalized": self.normalized,
            "pattern_kind": self.pattern_kind.value,
            "confidence": round(self.confidence, 3),
        }


@dataclass(frozen=True)
class NormalizationResult:
    normalized_message: str
    changes: List[TimeChange] = field(default_factory=list)
    has_time_patterns: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalized_message": self.normalized_message,
            "changes": [c.to_dict() for c in self.changes],
            "has_time_patterns": self.has_time_patterns,
        }
