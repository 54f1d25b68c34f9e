"""
Config package.

Exposes the environment-driven settings object, the fixed booking policy
constants, and the locale table loader.
"""

from .config import config, ConciergeConfig
from . import policy
from .locales import (
    LocaleRegistry,
    LocaleTables,
    load_locale_registry,
    build_locale_registry,
)

__all__ = [
    "config",
    "ConciergeConfig",
    "policy",
    "LocaleRegistry",
    "LocaleTables",
    "load_locale_registry",
    "build_locale_registry",
]
