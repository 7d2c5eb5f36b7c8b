import pytest
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient

from petfunny.api.deps import get_clock, get_repository
from petfunny.core.errors import StorageError
from petfunny.main import app
from petfunny.models.schedule import default_opening_hours

TZ = ZoneInfo("America/Sao_Paulo")

# Sunday morning, the day before the bookings used across the tests
FIXED_NOW = datetime(2025, 6, 1, 8, 0, tzinfo=TZ)


class FakeRepository:
    """In-memory stand-in for the Supabase repository."""

    def __init__(self, opening_hours=None):
        self.bookings = {}
        self.opening_hours = list(opening_hours) if opening_hours is not None else default_opening_hours()
        self.records = {table: {} for table in ("customers", "pets", "services", "mimos", "dog_breeds")}
        self.next_id = 1
        self.fail = False
        self.booking_reads = 0

    def _check(self):
        if self.fail:
            raise StorageError()

    def _new_id(self):
        new_id = self.next_id
        self.next_id += 1
        return new_id

    def add_booking(self, day, time, status="agendado", **extra):
        row = {
            "id": self._new_id(),
            "customer_id": extra.pop("customer_id", 1),
            "date": day,
            "time": time,
            "status": status,
            "prize": "",
            "notes": "",
            "service": "",
            **extra,
        }
        self.bookings[row["id"]] = row
        return row

    def add_record(self, table, **fields):
        row = {"id": self._new_id(), **fields}
        self.records[table][row["id"]] = row
        return row

    async def list_bookings_by_date(self, day: date):
        self._check()
        self.booking_reads += 1
        return [dict(row) for row in self.bookings.values() if row["date"] == day.isoformat()]

    async def list_bookings(self, date_from=None, date_to=None, status=None):
        self._check()
        rows = []
        for row in self.bookings.values():
            if date_from and row["date"] < date_from.isoformat():
                continue
            if date_to and row["date"] > date_to.isoformat():
                continue
            if status and row["status"] != status:
                continue
            customer = self.records["customers"].get(row["customer_id"], {})
            rows.append({**row, "customer_name": customer.get("name", ""), "customer_phone": customer.get("phone", "")})
        return sorted(rows, key=lambda r: (r["date"], r["time"]))

    async def get_booking(self, booking_id):
        self._check()
        row = self.bookings.get(booking_id)
        return dict(row) if row else None

    async def create_booking(self, fields):
        self._check()
        row = {"id": self._new_id(), "last_notification_at": None, **fields}
        self.bookings[row["id"]] = row
        return dict(row)

    async def update_booking(self, booking_id, fields):
        self._check()
        self.bookings[booking_id].update(fields)
        return dict(self.bookings[booking_id])

    async def delete_booking(self, booking_id):
        self._check()
        return self.bookings.pop(booking_id, None) is not None

    async def list_opening_hours(self):
        self._check()
        return list(self.opening_hours)

    async def save_opening_hours(self, rules):
        self._check()
        self.opening_hours = list(rules)
        return self.opening_hours

    async def list_records(self, table, filters=None):
        self._check()
        rows = list(self.records[table].values())
        for column, value in (filters or {}).items():
            rows = [row for row in rows if row.get(column) == value]
        return [dict(row) for row in rows]

    async def get_record(self, table, record_id):
        self._check()
        row = self.records[table].get(record_id)
        return dict(row) if row else None

    async def create_record(self, table, fields):
        self._check()
        return dict(self.add_record(table, **fields))

    async def update_record(self, table, record_id, fields):
        self._check()
        if record_id not in self.records[table]:
            return None
        self.records[table][record_id].update(fields)
        return dict(self.records[table][record_id])

    async def delete_record(self, table, record_id):
        self._check()
        return self.records[table].pop(record_id, None) is not None


@pytest.fixture
def make_repo():
    return FakeRepository


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def client(repo, clock):
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
