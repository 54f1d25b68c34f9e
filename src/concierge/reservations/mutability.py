"""
Reservation mutability policy.

Whether a booking can still be changed or cancelled depends only on how far
away it is:

    hours until reservation   modify   cancel   refund
    >= 24                      yes      yes      yes
    4 .. 24                    yes      yes      no
    2 .. 4                     no       yes      no
    < 2 (or in the past)       no       no       no

All boundaries are inclusive. The current instant is always passed in.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from ..config import policy
from ..results import business_rule_failure, success_response

logger = logging.getLogger(__name__)

_SHORT_OFFSET = re.compile(r"([+-]\d{2})$")
_MINUTES_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


@dataclass(frozen=True)
class ReservationMutability:
    can_modify: bool
    can_cancel: bool
    hours_until: float
    refund_eligible: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_modify": self.can_modify,
            "can_cancel": self.can_cancel,
            "hours_until": round(self.hours_until, 1),
            "refund_eligible": self.refund_eligible,
        }


def _as_utc(value: datetime) -> datetime:
    # Naive values are taken to be UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_mutability(target_time_utc: datetime, now_utc: datetime) -> ReservationMutability:
    """
    Decide what the guest may still do with a reservation.

    Args:
        target_time_utc: Reservation start
        now_utc: Current instant

    Returns:
        ReservationMutability with the signed fractional hours until the
        reservation (negative when it is in the past)
    """
    delta = _as_utc(target_time_utc) - _as_utc(now_utc)
    hours_until = delta.total_seconds() / 3600.0
    return ReservationMutability(
        can_modify=hours_until >= policy.MODIFY_MIN_HOURS,
        can_cancel=hours_until >= policy.CANCEL_MIN_HOURS,
        hours_until=hours_until,
        refund_eligible=hours_until >= policy.REFUND_MIN_HOURS,
    )


def parse_reservation_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored reservation timestamp into an aware UTC datetime.

    Accepts the shapes databases hand back, e.g. "2025-07-06 17:10:00+00",
    "2025-07-06T17:10", "2025-07-06T17:10:00Z". Values without an offset are
    UTC.

    Returns:
        Aware UTC datetime, or None when the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)

    text = str(value).strip().replace(" ", "T", 1)
    if not text:
        return None
    if _MINUTES_ONLY.match(text):
        text += ":00"
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _SHORT_OFFSET.sub(r"\1:00", text) if "T" in text else text

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Unparseable reservation timestamp", extra={"value": str(value)})
        return None
    return _as_utc(parsed)


def local_slot(target_utc: datetime, tz_name: str) -> Tuple[str, str]:
    """
    Render a UTC instant as the restaurant's local ("YYYY-MM-DD", "HH:MM").

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If tz_name is not a known IANA zone
    """
    local = _as_utc(target_utc).astimezone(ZoneInfo(tz_name))
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def evaluate_modification(target_time_utc: datetime, now_utc: datetime) -> Dict[str, Any]:
    """Tagged outcome: success with the mutability, or MODIFICATION_TOO_LATE."""
    mutability = compute_mutability(target_time_utc, now_utc)
    if not mutability.can_modify:
        hours = round(mutability.hours_until, 1)
        return business_rule_failure(
            "MODIFICATION_TOO_LATE",
            f"This reservation is too close to modify ({hours} hours away, "
            f"minimum {policy.MODIFY_MIN_HOURS:g} hours required). "
            "Please call the restaurant directly.",
            hours_until=hours,
            minimum_hours=policy.MODIFY_MIN_HOURS,
        )
    return success_response({"mutability": mutability})


def evaluate_cancellation(target_time_utc: datetime, now_utc: datetime) -> Dict[str, Any]:
    """Tagged outcome: success with the mutability, or CANCELLATION_TOO_LATE."""
    mutability = compute_mutability(target_time_utc, now_utc)
    if not mutability.can_cancel:
        hours = round(mutability.hours_until, 1)
        return business_rule_failure(
            "CANCELLATION_TOO_LATE",
            f"This reservation is too close to cancel ({hours} hours away, "
            f"minimum {policy.CANCEL_MIN_HOURS:g} hours required). "
            "Please call the restaurant directly.",
            hours_until=hours,
            minimum_hours=policy.CANCEL_MIN_HOURS,
        )
    return success_response({"mutability": mutability})
