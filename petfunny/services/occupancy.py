from datetime import date
from typing import Any, Iterable, Mapping, Optional, Set

from petfunny.core.logger import logger
from petfunny.models.booking import BookingStatus
from petfunny.services.repository import BookingRepository
from petfunny.services.time_utils import normalize_time_string


def build_occupancy(bookings: Iterable[Mapping[str, Any]], exclude_booking_id: Optional[int] = None) -> Set[str]:
    """
    Distinct HH:MM start times held by active bookings.
    Cancelled rows and the excluded booking never count; unreadable times are skipped.
    """
    used = set()
    for row in bookings:
        if exclude_booking_id is not None and str(row.get("id")) == str(exclude_booking_id):
            continue
        if BookingStatus.parse(row.get("status")) is BookingStatus.CANCELADO:
            continue

        normalized = normalize_time_string(row.get("time"))
        if normalized is None:
            logger.warning(f"⚠️ Ignoring booking {row.get('id')} with unreadable time {row.get('time')!r}")
            continue
        used.add(normalized)
    return used


class OccupancyIndex:
    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def used_times(self, day: date, exclude_booking_id: Optional[int] = None) -> Set[str]:
        bookings = await self.repository.list_bookings_by_date(day)
        return build_occupancy(bookings, exclude_booking_id)
