"""
Guest-supplied reservation identifiers.

Guests look up bookings by confirmation number, phone or name, usually
without saying which one they typed. The kind is inferred from the number
of digits in the string.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..config import policy
from ..results import success_response, validation_failure

_NON_DIGITS = re.compile(r"\D")


class IdentifierKind(str, Enum):
    CONFIRMATION = "confirmation"
    PHONE = "phone"
    NAME = "name"


def classify_identifier(identifier: str) -> IdentifierKind:
    """
    Infer what kind of identifier a guest typed.

    Non-digits are stripped first, so "+1 (415) 555-0100" counts 11 digits.

    - 1 to 4 digits: confirmation number
    - 7 or more digits: phone number
    - anything else (no digits, or 5-6 digits): name
    """
    digit_count = len(_NON_DIGITS.sub("", identifier or ""))
    if 1 <= digit_count <= policy.CONFIRMATION_MAX_DIGITS:
        return IdentifierKind.CONFIRMATION
    if digit_count >= policy.PHONE_MIN_DIGITS:
        return IdentifierKind.PHONE
    return IdentifierKind.NAME


@dataclass(frozen=True)
class IdentifierQuery:
    raw: str
    inferred_kind: IdentifierKind
    digits: str

    @property
    def reservation_id(self) -> Optional[int]:
        if self.inferred_kind is IdentifierKind.CONFIRMATION:
            return int(self.digits)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw": self.raw,
            "inferred_kind": self.inferred_kind.value,
            "digits": self.digits,
            "reservation_id": self.reservation_id,
        }


def build_identifier_query(raw: Optional[str]) -> Dict[str, Any]:
    """
    Classify a raw identifier into a lookup query.

    Returns:
        success_response with the IdentifierQuery, or a validation failure
        (EMPTY_IDENTIFIER) for blank input
    """
    cleaned = (raw or "").strip()
    if not cleaned:
        return validation_failure("EMPTY_IDENTIFIER", "Please provide a confirmation number, phone or name.")

    query = IdentifierQuery(
        raw=cleaned,
        inferred_kind=classify_identifier(cleaned),
        digits=_NON_DIGITS.sub("", cleaned),
    )
    return success_response(query)
