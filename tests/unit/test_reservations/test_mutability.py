import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest

from concierge.reservations import (
    compute_mutability,
    evaluate_cancellation,
    evaluate_modification,
    local_slot,
    parse_reservation_timestamp,
)

NOW = datetime(2025, 7, 6, 12, 0, tzinfo=timezone.utc)


def _in(hours):
    return NOW + timedelta(hours=hours)


class TestComputeMutability:

    @pytest.mark.parametrize("hours,modify,cancel,refund", [
        (48, True, True, True),
        (24, True, True, True),
        (23.99, True, True, False),
        (4, True, True, False),
        (3.99, False, True, False),
        (2, False, True, False),
        (1.99, False, False, False),
        (0, False, False, False),
        (-5, False, False, False),
    ])
    def test_windows(self, hours, modify, cancel, refund):
        m = compute_mutability(_in(hours), NOW)

        assert m.can_modify is modify
        assert m.can_cancel is cancel
        assert m.refund_eligible is refund
        assert m.hours_until == pytest.approx(hours)

    def test_modify_implies_cancel(self):
        for minutes in range(-120, 30 * 60, 7):
            m = compute_mutability(NOW + timedelta(minutes=minutes), NOW)
            if m.can_modify:
                assert m.can_cancel

    def test_past_reservation_has_negative_hours(self):
        m = compute_mutability(_in(-1.5), NOW)
        assert m.hours_until == pytest.approx(-1.5)

    def test_naive_values_are_utc(self):
        naive_now = datetime(2025, 7, 6, 12, 0)
        m = compute_mutability(datetime(2025, 7, 6, 16, 0), naive_now)
        assert m.hours_until == pytest.approx(4.0)
        assert m.can_modify

    def test_offsets_are_respected(self):
        belgrade = timezone(timedelta(hours=2))
        target = datetime(2025, 7, 6, 18, 0, tzinfo=belgrade)  # 16:00 UTC
        assert compute_mutability(target, NOW).hours_until == pytest.approx(4.0)

    def test_to_dict_rounds_hours(self):
        data = compute_mutability(NOW + timedelta(minutes=200), NOW).to_dict()
        assert data == {
            "can_modify": False,
            "can_cancel": True,
            "hours_until": 3.3,
            "refund_eligible": False,
        }


class TestParseReservationTimestamp:

    @pytest.mark.parametrize("value", [
        "2025-07-06 17:10:00+00",
        "2025-07-06T17:10:00+00:00",
        "2025-07-06T17:10:00Z",
        "2025-07-06T17:10",
        "2025-07-06 17:10:00",
        "2025-07-06T19:10:00+02:00",
    ])
    def test_accepted_shapes(self, value):
        assert parse_reservation_timestamp(value) == datetime(2025, 7, 6, 17, 10, tzinfo=timezone.utc)

    def test_datetime_passes_through_as_utc(self):
        value = datetime(2025, 7, 6, 17, 10)
        assert parse_reservation_timestamp(value) == datetime(2025, 7, 6, 17, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "tomorrow at seven", "2025-13-45T99:00"])
    def test_unparseable_returns_none(self, value):
        assert parse_reservation_timestamp(value) is None

    def test_unparseable_logs_warning(self, caplog):
        caplog.set_level(logging.WARNING, logger="concierge")
        parse_reservation_timestamp("not a time")
        assert any(r.getMessage() == "Unparseable reservation timestamp" for r in caplog.records)


class TestLocalSlot:

    def test_summer_offset(self):
        assert local_slot(datetime(2025, 7, 6, 17, 0, tzinfo=timezone.utc), "Europe/Belgrade") == ("2025-07-06", "19:00")

    def test_winter_offset(self):
        assert local_slot(datetime(2025, 1, 6, 17, 0, tzinfo=timezone.utc), "Europe/Belgrade") == ("2025-01-06", "18:00")

    def test_crosses_midnight(self):
        assert local_slot(datetime(2025, 7, 6, 23, 30, tzinfo=timezone.utc), "Europe/Belgrade") == ("2025-07-07", "01:30")

    def test_unknown_zone(self):
        with pytest.raises(ZoneInfoNotFoundError):
            local_slot(NOW, "Mars/Olympus_Mons")


class TestEvaluate:

    def test_modification_allowed(self):
        result = evaluate_modification(_in(5), NOW)

        assert result["success"] is True
        assert result["data"]["mutability"]["can_modify"] is True

    def test_modification_too_late(self):
        result = evaluate_modification(_in(3), NOW)

        assert result["success"] is False
        assert result["error"]["category"] == "business_rule"
        assert result["error"]["code"] == "MODIFICATION_TOO_LATE"
        assert result["error"]["details"] == {"hours_until": 3.0, "minimum_hours": 4}

    def test_cancellation_allowed_where_modification_is_not(self):
        assert evaluate_cancellation(_in(3), NOW)["success"] is True

    def test_cancellation_too_late(self):
        result = evaluate_cancellation(_in(1), NOW)

        assert result["error"]["code"] == "CANCELLATION_TOO_LATE"
        assert result["error"]["details"]["hours_until"] == 1.0
