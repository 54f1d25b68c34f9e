from datetime import datetime, timezone

import pytest

from concierge.config import load_locale_registry
from concierge.disambiguation import DisambiguationStateMachine, PendingDisambiguation
from concierge.normalization import TimeNormalizer

FIXED_NOW = datetime(2025, 7, 6, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def registry():
    return load_locale_registry()


@pytest.fixture
def normalizer(registry):
    return TimeNormalizer(registry, acceptance_threshold=0.6)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def machine(registry):
    return DisambiguationStateMachine(registry, clock=lambda: FIXED_NOW)


@pytest.fixture
def booking_payload():
    return {
        "restaurant_id": 1,
        "timezone": "Europe/Belgrade",
        "language": "en",
        "guest_phone": "+381 64 123 4567",
        "date": "2025-07-06",
        "time": "19:00",
        "guests": 4,
        "comments": "window seat",
    }


@pytest.fixture
def pending(booking_payload):
    return PendingDisambiguation.create(
        candidate_a="Anna Petrova",
        candidate_b="Maria",
        payload=booking_payload,
        now=FIXED_NOW,
    )
