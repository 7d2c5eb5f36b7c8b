"""
Time-of-day parsing and half-hour slot arithmetic.

All times are handled as canonical "HH:MM" strings or as minutes since
midnight. Nothing in here raises on bad input: parsers return None.
"""
import re
from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from petfunny.models.schedule import SlotWindow

SLOT_MINUTES = 30

# "7:30", "07:30", "07:30:00", "7h30", "07H30", "7.30"
TIME_PATTERN = re.compile(r"^\s*(\d{1,2})\s*[:hH.]\s*(\d{2})(?::\d{2})?\s*$")


def pad2(n: int) -> str:
    return f"{n:02d}"


def normalize_time_string(raw) -> Optional[str]:
    """Returns canonical HH:MM or None if raw is not a valid 00-23 / 00-59 time."""
    if raw is None:
        return None
    match = TIME_PATTERN.match(str(raw))
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return f"{pad2(hours)}:{pad2(minutes)}"


def normalize_and_validate_half_hour(raw) -> Optional[str]:
    """Strict form used at admission time: only :00 and :30 survive."""
    normalized = normalize_time_string(raw)
    if normalized is None:
        return None
    if normalized[3:] not in ("00", "30"):
        return None
    return normalized


def hhmm_to_minutes(hhmm) -> Optional[int]:
    normalized = normalize_time_string(hhmm)
    if normalized is None:
        return None
    hours, minutes = normalized.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(total: int) -> str:
    hours = (total // 60) % 24
    return f"{pad2(hours)}:{pad2(total % 60)}"


def round_to_slot(total: int) -> int:
    # Half up: 07:15 -> 07:30, 07:14 -> 07:00
    return ((total + SLOT_MINUTES // 2) // SLOT_MINUTES) * SLOT_MINUTES


def clamp_to_range(raw, window: "SlotWindow") -> Optional[str]:
    """
    Soft correction for a time typed into the booking form.
    Rounds to the nearest half hour and pulls it inside the day's window.
    Returns None for unparseable input or a closed day.
    """
    total = hhmm_to_minutes(raw)
    if total is None or window.closed:
        return None

    total = round_to_slot(total)
    total = max(window.start_minutes, min(window.end_minutes, total))

    # Window edges are not guaranteed to be slot aligned
    if total % SLOT_MINUTES:
        total = round_to_slot(total)
        if total > window.end_minutes:
            total -= SLOT_MINUTES
        elif total < window.start_minutes:
            total += SLOT_MINUTES
    return minutes_to_hhmm(total)


def build_slot_range(start_minutes: int, end_minutes: int) -> list:
    """All slot start times from open to close, both inclusive."""
    return [minutes_to_hhmm(t) for t in range(start_minutes, end_minutes + 1, SLOT_MINUTES)]


def parse_iso_date(raw) -> Optional[date]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        return None


def format_date_br(value) -> str:
    parsed = parse_iso_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def day_of_week(value: date) -> int:
    """0=Sunday .. 6=Saturday, the numbering used by the opening-hours table."""
    return (value.weekday() + 1) % 7
