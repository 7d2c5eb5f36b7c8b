import pytest
from datetime import date

from petfunny.core.config import settings
from petfunny.models.schedule import SlotWindow
from petfunny.services.time_utils import (
    SLOT_MINUTES,
    build_slot_range,
    clamp_to_range,
    day_of_week,
    format_date_br,
    hhmm_to_minutes,
    minutes_to_hhmm,
    normalize_and_validate_half_hour,
    normalize_time_string,
    parse_iso_date,
)

BUSINESS_DAY = SlotWindow(closed=False, start_minutes=7 * 60 + 30, end_minutes=17 * 60 + 30)


@pytest.mark.parametrize("raw, expected", [
    ("7:30", "07:30"),
    ("07:05", "07:05"),
    ("7h30", "07:30"),
    ("07H45", "07:45"),
    (" 9.00 ", "09:00"),
    ("10:30:00", "10:30"),
    ("23:59", "23:59"),
])
def test_normalize_time_string_accepts_common_formats(raw, expected):
    assert normalize_time_string(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "24:00", "23:61", "7", "07:5", "-1:30"])
def test_normalize_time_string_rejects_invalid(raw):
    assert normalize_time_string(raw) is None


def test_half_hour_validation():
    assert normalize_and_validate_half_hour("7:30") == "07:30"
    assert normalize_and_validate_half_hour("08:00") == "08:00"
    assert normalize_and_validate_half_hour("07:31") is None
    assert normalize_and_validate_half_hour("23:61") is None


def test_clamp_to_range_pulls_into_window():
    assert clamp_to_range("07:05", BUSINESS_DAY) == "07:30"
    assert clamp_to_range("23:50", BUSINESS_DAY) == "17:30"


def test_clamp_to_range_rounds_to_nearest_half_hour():
    assert clamp_to_range("10:14", BUSINESS_DAY) == "10:00"
    assert clamp_to_range("10:15", BUSINESS_DAY) == "10:30"
    assert clamp_to_range("10:50", BUSINESS_DAY) == "11:00"


def test_clamp_to_range_keeps_unaligned_edges_inside():
    odd = SlotWindow(closed=False, start_minutes=8 * 60 + 10, end_minutes=12 * 60 + 20)
    assert clamp_to_range("06:00", odd) == "08:30"
    assert clamp_to_range("18:00", odd) == "12:00"


def test_clamp_to_range_closed_or_garbage():
    assert clamp_to_range("10:00", SlotWindow(closed=True)) is None
    assert clamp_to_range("lunch", BUSINESS_DAY) is None


def test_minutes_conversions():
    assert hhmm_to_minutes("07:30") == 450
    assert hhmm_to_minutes("nope") is None
    assert minutes_to_hhmm(450) == "07:30"
    assert minutes_to_hhmm(1050) == "17:30"


def test_dates():
    assert parse_iso_date("2025-06-02") == date(2025, 6, 2)
    assert parse_iso_date("2025-06-02T10:00:00Z") == date(2025, 6, 2)
    assert parse_iso_date("02/06/2025") is None
    assert format_date_br("2025-06-02") == "02/06/2025"
    assert format_date_br(None) == ""
    # 2025-06-01 is a Sunday
    assert day_of_week(date(2025, 6, 1)) == 0
    assert day_of_week(date(2025, 6, 7)) == 6


def test_slot_size_is_fixed_half_hour():
    # Not configurable; the grid and the stored times both assume half hours
    assert not hasattr(settings, "SLOT_MINUTES")
    assert SLOT_MINUTES == 30
    assert build_slot_range(8 * 60, 9 * 60) == ["08:00", "08:30", "09:00"]
