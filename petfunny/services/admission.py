from datetime import datetime, timedelta, time as dt_time
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from petfunny.core.config import settings
from petfunny.core.logger import logger
from petfunny.models.booking import AdmissionResult
from petfunny.models.schedule import OpeningHoursRule, WEEKDAY_NAMES, default_opening_hours
from petfunny.services.occupancy import OccupancyIndex
from petfunny.services.repository import BookingRepository
from petfunny.services.slot_grid import compute_slot_grid
from petfunny.services.time_utils import (
    day_of_week,
    hhmm_to_minutes,
    minutes_to_hhmm,
    normalize_time_string,
    normalize_and_validate_half_hour,
    parse_iso_date,
)

TZ = ZoneInfo(settings.TIMEZONE)

REASON_REQUIRED = "date/time required"
REASON_INVALID_DATE = "invalid date"
REASON_INVALID_TIME = "invalid time"
REASON_HALF_HOUR = "must choose a time on the half hour"
REASON_PAST = "cannot book in the past"
REASON_TAKEN = "slot unavailable, choose another time"


def local_now() -> datetime:
    return datetime.now(TZ)


async def load_opening_hours(repository: BookingRepository) -> List[OpeningHoursRule]:
    """
    Weekly table from storage. The seeded default applies only while the
    store holds no rules at all; a weekday missing from a stored table is closed.
    """
    rules = await repository.list_opening_hours()
    if not rules:
        logger.info("ℹ️ No opening hours stored yet, using the default schedule")
        return default_opening_hours()
    return rules


def closed_reason(dow: int) -> str:
    return f"closed on {WEEKDAY_NAMES[dow]}s"


def hours_reason(dow: int, start_minutes: int, end_minutes: int) -> str:
    label = "weekday" if 1 <= dow <= 5 else WEEKDAY_NAMES[dow]
    return f"{label} hours are {minutes_to_hhmm(start_minutes)}-{minutes_to_hhmm(end_minutes)}"


class AdmissionValidator:
    """
    Decides whether a (date, time) may hold a booking.
    Checks run in a fixed order and the first failing one names the reason.
    """

    def __init__(
        self,
        repository: BookingRepository,
        clock: Callable[[], datetime] = local_now,
        grace_seconds: int = settings.PAST_GRACE_SECONDS,
    ):
        self.repository = repository
        self.occupancy = OccupancyIndex(repository)
        self.clock = clock
        self.grace = timedelta(seconds=grace_seconds)

    async def validate(self, day, time, exclude_booking_id: Optional[int] = None) -> AdmissionResult:
        if day in (None, "") or time in (None, ""):
            return AdmissionResult.rejected(REASON_REQUIRED)

        parsed_day = parse_iso_date(day)
        if parsed_day is None:
            return AdmissionResult.rejected(REASON_INVALID_DATE)

        if normalize_time_string(time) is None:
            return AdmissionResult.rejected(REASON_INVALID_TIME)

        slot = normalize_and_validate_half_hour(time)
        if slot is None:
            return AdmissionResult.rejected(REASON_HALF_HOUR)

        dow = day_of_week(parsed_day)
        rules = await load_opening_hours(self.repository)
        window = compute_slot_grid(parsed_day, rules)
        if window.closed:
            return AdmissionResult.rejected(closed_reason(dow))

        minutes = hhmm_to_minutes(slot)
        if not (window.start_minutes <= minutes <= window.end_minutes):
            return AdmissionResult.rejected(hours_reason(dow, window.start_minutes, window.end_minutes))

        now = self.clock()
        starts_at = datetime.combine(parsed_day, dt_time(minutes // 60, minutes % 60), tzinfo=now.tzinfo)
        if starts_at < now - self.grace:
            return AdmissionResult.rejected(REASON_PAST)

        # Single capacity per slot: max_per_half_hour is stored but not enforced beyond 1
        used = await self.occupancy.used_times(parsed_day, exclude_booking_id)
        if slot in used:
            logger.info(f"🚫 Slot {parsed_day} {slot} already taken")
            return AdmissionResult.rejected(REASON_TAKEN)

        return AdmissionResult.admitted(slot)
