"""
Concierge Core - Error Classes

Exceptions reserved for programmer errors and conditions that must abort
an operation. Expected outcomes (no match, too late to modify, empty input)
are returned as tagged results instead, see concierge.results.

- LocaleTableError: malformed locale vocabulary or prompt tables
- PendingIntegrityError: a pending disambiguation cannot be safely persisted
- TemplateRenderError: prompt template rendered without its required data
"""


class ConciergeError(Exception):
    """Base class for concierge core errors."""
    pass


class LocaleTableError(ConciergeError):
    """Raised when a locale table is missing fields or contains invalid patterns."""
    pass


class PendingIntegrityError(ConciergeError):
    """Raised when a pending disambiguation fails its serialization-integrity check."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class TemplateRenderError(ConciergeError):
    """Raised when a prompt template is missing or lacks placeholder data."""
    pass
