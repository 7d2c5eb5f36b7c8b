from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from petfunny.models.schedule import OpeningHoursRule


class BookingRepository(Protocol):
    """
    Persistence operations the scheduling core depends on.
    Implementations raise StorageError when the store cannot answer.
    """

    async def list_bookings_by_date(self, day: date) -> List[Dict[str, Any]]: ...

    async def list_bookings(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]: ...

    async def get_booking(self, booking_id: int) -> Optional[Dict[str, Any]]: ...

    async def create_booking(self, fields: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_booking(self, booking_id: int, fields: Dict[str, Any]) -> Dict[str, Any]: ...

    async def delete_booking(self, booking_id: int) -> bool: ...

    async def list_opening_hours(self) -> List[OpeningHoursRule]: ...

    async def save_opening_hours(self, rules: List[OpeningHoursRule]) -> List[OpeningHoursRule]: ...

    async def get_record(self, table: str, record_id: int) -> Optional[Dict[str, Any]]: ...

    async def list_records(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...

    async def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_record(self, table: str, record_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def delete_record(self, table: str, record_id: int) -> bool: ...
