"""
Time-expression normalization for guest messages.
"""
from .models import NormalizationResult, PatternKind, TimeChange
from .time_normalizer import TimeNormalizer, has_time_patterns, is_reasonable_restaurant_time

__all__ = [
    "NormalizationResult",
    "PatternKind",
    "TimeChange",
    "TimeNormalizer",
    "has_time_patterns",
    "is_reasonable_restaurant_time",
]
