import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from petfunny.core.errors import StorageError
from petfunny.services.admission import load_opening_hours
from petfunny.services.db_service import db_service
from petfunny.services.slot_grid import compute_slot_grid

MONDAY = date(2025, 6, 2)


def mock_client(rows=None, error=None):
    """Supabase client whose opening_hours query returns `rows` (or raises `error`)."""
    client = MagicMock()
    query = client.table.return_value.select.return_value.order.return_value
    if error:
        query.execute = AsyncMock(side_effect=error)
    else:
        query.execute = AsyncMock(return_value=MagicMock(data=rows))
    return client


@pytest.fixture
def use_client(monkeypatch):
    def _use(client):
        monkeypatch.setattr(db_service, "get_client", AsyncMock(return_value=client))
    return _use


@pytest.mark.asyncio
async def test_invalid_row_reads_as_closed_day(use_client):
    use_client(mock_client([
        {"id": 1, "dow": 1, "is_closed": False, "open_time": "08:15", "close_time": "12:00"},
        {"id": 2, "dow": 2, "is_closed": False, "open_time": "08:00:00", "close_time": "12:00:00"},
    ]))

    rules = {rule.dow: rule for rule in await db_service.list_opening_hours()}

    assert rules[1].is_closed is True
    assert rules[2].open_time == "08:00"


@pytest.mark.asyncio
async def test_unusable_table_does_not_fall_back_to_default(use_client):
    use_client(mock_client([
        {"id": 1, "dow": 9, "is_closed": False, "open_time": "08:00", "close_time": "12:00"},
        {"id": 2, "dow": 1, "is_closed": False, "open_time": "18:00", "close_time": "08:00"},
    ]))

    rules = await load_opening_hours(db_service)

    assert all(rule.is_closed for rule in rules)
    assert compute_slot_grid(MONDAY, rules).closed is True
    # Saturday has no usable row either
    assert compute_slot_grid(date(2025, 6, 7), rules).closed is True


@pytest.mark.asyncio
async def test_unusable_dows_alone_still_close_the_week(use_client):
    use_client(mock_client([{"id": 1, "dow": "mon", "open_time": "08:00", "close_time": "12:00"}]))

    rules = await db_service.list_opening_hours()
    assert [rule.dow for rule in rules] == list(range(7))
    assert all(rule.is_closed for rule in rules)


@pytest.mark.asyncio
async def test_empty_table_uses_default_week(use_client):
    use_client(mock_client([]))

    assert await db_service.list_opening_hours() == []
    rules = await load_opening_hours(db_service)
    assert compute_slot_grid(MONDAY, rules).start_minutes == 450


@pytest.mark.asyncio
async def test_client_failure_becomes_storage_error(use_client):
    use_client(mock_client(error=RuntimeError("connection reset")))

    with pytest.raises(StorageError):
        await db_service.list_opening_hours()
