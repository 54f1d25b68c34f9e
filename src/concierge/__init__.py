"""
Concierge Core

Conversation-resolution core for a restaurant booking assistant:
time-expression normalization, name disambiguation and reservation
mutability rules.

Usage:
    from concierge import TimeNormalizer, load_locale_registry

    registry = load_locale_registry()
    result = TimeNormalizer(registry).normalize("table for 4 at 19-30")
"""
from .config import config, load_locale_registry
from .conversation import ConversationTurnProcessor
from .disambiguation import DisambiguationStateMachine, PendingDisambiguation
from .memory import InMemoryPendingStore
from .normalization import TimeNormalizer
from .reservations import classify_identifier, compute_mutability

__version__ = "0.1.0"

__all__ = [
    "config",
    "load_locale_registry",
    "ConversationTurnProcessor",
    "DisambiguationStateMachine",
    "PendingDisambiguation",
    "InMemoryPendingStore",
    "TimeNormalizer",
    "classify_identifier",
    "compute_mutability",
]
