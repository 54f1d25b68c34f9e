# concierge/config/policy.py
from enum import Enum

# ----------------------------
# Booking mutability windows (hours before the reservation, inclusive)
# ----------------------------
MODIFY_MIN_HOURS = 4.0
CANCEL_MIN_HOURS = 2.0
REFUND_MIN_HOURS = 24.0

# ----------------------------
# Identifier classification (digit counts after stripping non-digits)
# ----------------------------
CONFIRMATION_MAX_DIGITS = 4
PHONE_MIN_DIGITS = 7

# ----------------------------
# Time normalization
# ----------------------------
# Base score every candidate starts from before context adjustments.
BASE_TIME_CONFIDENCE = 0.5
TIME_INDICATOR_BONUS = 0.3
DINNER_HOURS_BONUS = 0.2
RANGE_PENALTY = 0.4
UNIT_PENALTY = 0.5
QUANTITY_PENALTY = 0.3
DATE_PENALTY = 0.4

DINNER_HOURS = (17, 23)
DINING_HOURS = (6, 23)

COMMA_CONFIDENCE = 0.9
MARKER_CONFIDENCE = 0.95
HALF_HOUR_CONFIDENCE = 0.8
LOCALE_DECIMAL_CONFIDENCE = 0.85

# Changes above this are counted as high-confidence in normalization logs.
HIGH_CONFIDENCE = 0.8

# ----------------------------
# Disambiguation
# ----------------------------
MAX_DISAMBIGUATION_ATTEMPTS = 3
FUZZY_MAX_DISTANCE = 2
# Candidates shorter than this are never fuzzy matched ("Bob" vs "Rob").
FUZZY_MIN_CANDIDATE_LENGTH = 4
# A reply must be at least this long to count as contained in a candidate.
MIN_CONTAINED_REPLY_LENGTH = 3


class CandidateRole(str, Enum):
    ON_FILE = "on_file"
    REQUESTED = "requested"


# Positional references ("the first one", "option 2") resolve through this
# mapping. Locale tables only name positions, never roles.
POSITION_ROLES = {
    1: CandidateRole.ON_FILE,
    2: CandidateRole.REQUESTED,
}

# Reprompt verbosity tiers, indexed by the number of failed attempts so far.
PROMPT_TIERS = ("polite", "explicit", "final")
FALLBACK_TIER = "fallback"

# ----------------------------
# Pending disambiguation payload allow-list
# ----------------------------
CONTEXT_PAYLOAD_KEYS = frozenset({
    "restaurant_id",
    "timezone",
    "session_id",
    "language",
})

BOOKING_PAYLOAD_KEYS = frozenset({
    "guest_name",
    "guest_phone",
    "date",
    "time",
    "guests",
    "special_requests",
    "comments",
    "reservation_id",
})

ALLOWED_PAYLOAD_KEYS = CONTEXT_PAYLOAD_KEYS | BOOKING_PAYLOAD_KEYS
