"""
Reply sanitization.

Guest replies are untrusted free text. Before any matching they are reduced
to a canonical, bounded form so that lookalike characters, invisible
characters and markup cannot change which candidate is picked.
"""
import re
import unicodedata
from typing import Optional

from ..config import config

# Characters used for markup or template/shell injection
INJECTION_CHARS = '<>{}[]`$|;\\"'

_INJECTION_TABLE = str.maketrans({ch: " " for ch in INJECTION_CHARS})
_WHITESPACE = re.compile(r"\s+")

# Unicode categories dropped outright: format (zero-width joiners, bidi
# overrides), private use and surrogates. Control characters are handled
# separately so newlines and tabs become spaces.
_DROPPED_CATEGORIES = {"Cf", "Co", "Cs"}


def _strip_invisible(text: str) -> str:
    chars = []
    for ch in text:
        category = unicodedata.category(ch)
        if category == "Cc":
            if ch.isspace():
                chars.append(" ")
            continue
        if category in _DROPPED_CATEGORIES:
            continue
        chars.append(ch)
    return "".join(chars)


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Canonicalize text for comparison.

    Order: drop invisible/control characters, NFKC, blank out injection
    characters, collapse whitespace, casefold, cut to max_length.
    """
    if not text:
        return ""
    cleaned = _strip_invisible(text)
    cleaned = unicodedata.normalize("NFKC", cleaned)
    # NFKC can surface new format characters (e.g. from compatibility forms)
    cleaned = _strip_invisible(cleaned)
    cleaned = cleaned.translate(_INJECTION_TABLE)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = cleaned.casefold()
    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip()
    return cleaned


def sanitize_reply(reply: Optional[str], max_length: Optional[int] = None) -> str:
    """Sanitize a guest reply, capped at MAX_REPLY_LENGTH characters by default."""
    if max_length is None:
        max_length = config.MAX_REPLY_LENGTH
    return sanitize_text(reply, max_length=max_length)
