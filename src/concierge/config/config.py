"""
Concierge Configuration

Centralized configuration for the conversation-resolution core.
All settings can be overridden via environment variables.
"""
import os
from typing import Optional


class ConciergeConfig:
    """
    Central configuration for the concierge core.

    All settings have sensible defaults and can be overridden via environment variables.

    Example:
        >>> from concierge.config import config
        >>> print(config.DEFAULT_LOCALE)
        en

        # Override via environment:
        >>> os.environ["TIME_ACCEPTANCE_THRESHOLD"] = "0.7"
        >>> config = ConciergeConfig()  # Reload
        >>> print(config.TIME_ACCEPTANCE_THRESHOLD)
        0.7
    """

    # ========================================================================
    # Logging Settings
    # ========================================================================

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    """Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"""

    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")
    """Log format: 'json' (structured) or 'pretty' (readable)"""

    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")
    """Optional: Write logs to file (e.g., '/var/log/concierge/core.log')"""

    LOG_NORMALIZATION_CHANGES: bool = os.getenv(
        "LOG_NORMALIZATION_CHANGES", "true").lower() == "true"
    """Log every applied time rewrite (pattern kind, confidence, span)"""

    # ========================================================================
    # Locale Settings
    # ========================================================================

    DEFAULT_LOCALE: str = os.getenv("DEFAULT_LOCALE", "en")
    """Locale used when a session has none, or asks for an unsupported one"""

    LOCALE_TABLES_PATH: Optional[str] = os.getenv("LOCALE_TABLES_PATH")
    """Optional override for the bundled config/data/locales.yaml"""

    # ========================================================================
    # Normalization / Disambiguation Tuning
    # ========================================================================

    TIME_ACCEPTANCE_THRESHOLD: float = float(
        os.getenv("TIME_ACCEPTANCE_THRESHOLD", "0.6"))
    """Contextual confidence a time rewrite must exceed (strictly)"""

    MAX_REPLY_LENGTH: int = int(os.getenv("MAX_REPLY_LENGTH", "200"))
    """Sanitized disambiguation replies are cut to this many characters"""

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"ConciergeConfig("
            f"locale={self.DEFAULT_LOCALE}, "
            f"threshold={self.TIME_ACCEPTANCE_THRESHOLD}, "
            f"log_level={self.LOG_LEVEL}, "
            f"log_format={self.LOG_FORMAT})"
        )


# Global config instance
config = ConciergeConfig()
