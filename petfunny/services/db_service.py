from supabase import create_async_client, AsyncClient
from pydantic import ValidationError
from petfunny.core.config import settings
from petfunny.core.errors import StorageError
from petfunny.models.schedule import OpeningHoursRule
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger("petfunny")

BOOKING_SELECT = "*, customers(name, phone), pets(name), services(title, value_cents)"

# Reference tables and their listing order
CATALOG_TABLES = {
    "customers": "name",
    "pets": "name",
    "services": "title",
    "mimos": "title",
    "dog_breeds": "name",
}


def _flatten_booking(row: Dict[str, Any]) -> Dict[str, Any]:
    """Lifts the embedded customer/pet/service columns to flat keys for the listing."""
    row = dict(row)
    customer = row.pop("customers", None) or {}
    pet = row.pop("pets", None) or {}
    service = row.pop("services", None) or {}
    row.setdefault("customer_name", customer.get("name", ""))
    row.setdefault("customer_phone", customer.get("phone", ""))
    row.setdefault("pet_name", pet.get("name", ""))
    row.setdefault("service_title", service.get("title") or row.get("service", ""))
    row.setdefault("value_cents", service.get("value_cents"))
    return row


class DBService:
    _instance = None
    _client: AsyncClient = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DBService, cls).__new__(cls)
        return cls._instance

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                logger.warning("⚠️ Supabase credentials missing")
                raise StorageError("Storage is not configured.")
            try:
                self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise StorageError() from e
        return self._client

    async def _run(self, action: str, query) -> List[Dict[str, Any]]:
        try:
            response = await query.execute()
        except Exception as e:
            logger.error(f"❌ DB Error ({action}): {e}")
            raise StorageError() from e
        return response.data or []

    # --- Bookings ---

    async def list_bookings_by_date(self, day: date) -> List[Dict[str, Any]]:
        client = await self.get_client()
        query = client.table("bookings").select("id, date, time, status").eq("date", day.isoformat())
        return await self._run("list_bookings_by_date", query)

    async def list_bookings(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        client = await self.get_client()
        query = client.table("bookings").select(BOOKING_SELECT)
        if date_from:
            query = query.gte("date", date_from.isoformat())
        if date_to:
            query = query.lte("date", date_to.isoformat())
        if status:
            query = query.eq("status", status)
        query = query.order("date", desc=False).order("time", desc=False)
        rows = await self._run("list_bookings", query)
        return [_flatten_booking(row) for row in rows]

    async def get_booking(self, booking_id: int) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        rows = await self._run("get_booking", client.table("bookings").select("*").eq("id", booking_id))
        return rows[0] if rows else None

    async def create_booking(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        client = await self.get_client()
        rows = await self._run("create_booking", client.table("bookings").insert(fields))
        if not rows:
            raise StorageError("Booking was not saved, please try again.")
        logger.info(f"✅ Booking {rows[0].get('id')} created for {fields.get('date')} {fields.get('time')}")
        return rows[0]

    async def update_booking(self, booking_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        client = await self.get_client()
        fields = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._run("update_booking", client.table("bookings").update(fields).eq("id", booking_id))
        if not rows:
            raise StorageError("Booking was not updated, please try again.")
        return rows[0]

    async def delete_booking(self, booking_id: int) -> bool:
        client = await self.get_client()
        rows = await self._run("delete_booking", client.table("bookings").delete().eq("id", booking_id))
        logger.info(f"🗑️ Booking {booking_id} deleted from DB.")
        return bool(rows)

    # --- Opening hours ---

    async def list_opening_hours(self) -> List[OpeningHoursRule]:
        client = await self.get_client()
        rows = await self._run("list_opening_hours", client.table("opening_hours").select("*").order("dow"))
        rules = []
        for row in rows:
            try:
                rules.append(OpeningHoursRule.model_validate(row))
            except ValidationError as e:
                logger.warning(f"⚠️ Invalid opening hours row for dow={row.get('dow')}, treating the day as closed: {e}")
                dow = row.get("dow")
                if isinstance(dow, int) and 0 <= dow <= 6:
                    rules.append(OpeningHoursRule(dow=dow, is_closed=True))

        # Rows exist, so the default week must not apply
        if rows and not rules:
            return [OpeningHoursRule(dow=dow, is_closed=True) for dow in range(7)]
        return rules

    async def save_opening_hours(self, rules: List[OpeningHoursRule]) -> List[OpeningHoursRule]:
        client = await self.get_client()
        now = datetime.now(timezone.utc).isoformat()
        payload = [{**rule.model_dump(), "updated_at": now} for rule in rules]
        await self._run("save_opening_hours", client.table("opening_hours").upsert(payload, on_conflict="dow"))
        logger.info(f"✅ Opening hours saved ({len(payload)} days)")
        return rules

    # --- Reference entities ---

    async def list_records(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        client = await self.get_client()
        query = client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        query = query.order(CATALOG_TABLES.get(table, "id"), desc=False)
        return await self._run(f"list_{table}", query)

    async def get_record(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        rows = await self._run(f"get_{table}", client.table(table).select("*").eq("id", record_id))
        return rows[0] if rows else None

    async def create_record(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        client = await self.get_client()
        rows = await self._run(f"create_{table}", client.table(table).insert(fields))
        if not rows:
            raise StorageError()
        logger.info(f"🆕 {table} record {rows[0].get('id')} created")
        return rows[0]

    async def update_record(self, table: str, record_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        client = await self.get_client()
        fields = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._run(f"update_{table}", client.table(table).update(fields).eq("id", record_id))
        return rows[0] if rows else None

    async def delete_record(self, table: str, record_id: int) -> bool:
        client = await self.get_client()
        rows = await self._run(f"delete_{table}", client.table(table).delete().eq("id", record_id))
        return bool(rows)

db_service = DBService()
