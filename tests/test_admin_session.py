import pytest
import requests
from datetime import date
from unittest.mock import MagicMock

from petfunny.models.booking import BookingStatus
from petfunny.models.schedule import default_opening_hours
from petfunny.services.admin_session import AdminApiClient, AdminSession, ApiError

MONDAY = date(2025, 6, 2)
SUNDAY = date(2025, 6, 1)


def make_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def session(http):
    client = AdminApiClient(base_url="http://api.test/", token="secret", timeout=2.5, http=http)
    return AdminSession(client)


def test_client_sends_token_and_timeout(http, session):
    http.request.return_value = make_response(body={"customers": []})
    session.client.get("/api/customers", {"q": "", "page": None, "active": "true"})

    http.headers.__setitem__.assert_called_with("X-Admin-Token", "secret")
    args, kwargs = http.request.call_args
    assert args == ("GET", "http://api.test/api/customers")
    assert kwargs["timeout"] == 2.5
    assert kwargs["params"] == {"active": "true"}


def test_rejection_is_not_retryable(http, session):
    http.request.return_value = make_response(400, {"error": "closed on Sundays"})
    with pytest.raises(ApiError) as exc:
        session.save_booking({"customer_id": 1, "date": SUNDAY.isoformat(), "time": "10:00"})
    assert exc.value.message == "closed on Sundays"
    assert exc.value.retryable is False


def test_storage_failure_is_retryable(http, session):
    http.request.return_value = make_response(503, {"error": "Storage unavailable, please try again.", "retryable": True})
    with pytest.raises(ApiError) as exc:
        session.validate_admission(MONDAY, "10:00")
    assert exc.value.retryable is True
    assert exc.value.status_code == 503


def test_timeout_is_retryable(http, session):
    http.request.side_effect = requests.Timeout("slow")
    with pytest.raises(ApiError) as exc:
        session.notification_for(1)
    assert exc.value.retryable is True


def test_failed_reload_keeps_last_good_state(http, session):
    rules = [rule.model_dump() for rule in default_opening_hours()]
    http.request.return_value = make_response(body={"opening_hours": rules})
    assert session.reload_opening_hours() is True
    assert len(session.opening_hours) == 7

    http.request.return_value = make_response(body={"occupied": ["10:00"]})
    assert session.reload_occupancy(MONDAY) is True

    http.request.side_effect = requests.ConnectionError("offline")
    assert session.reload_opening_hours() is False
    assert session.reload_occupancy(MONDAY) is False
    assert session.reload_bookings() is False

    assert len(session.opening_hours) == 7
    assert session.occupancy[MONDAY] == {"10:00"}
    assert session.last_error == "Server unreachable, please try again."


def test_local_slot_helpers(session):
    session.opening_hours = default_opening_hours()
    session.occupancy[MONDAY] = {"07:30", "10:00"}

    assert session.clamp_time(MONDAY, "06:00") == "07:30"
    assert session.clamp_time(MONDAY, "10:20") == "10:30"
    assert session.clamp_time(SUNDAY, "10:00") is None

    free = session.free_slots(MONDAY)
    assert free[0] == "08:00"
    assert "10:00" not in free
    assert free[-1] == "17:30"
    assert session.free_slots(SUNDAY) == []


def test_pets_of(session):
    session.pets = [{"id": 1, "customer_id": 7, "name": "Thor"}, {"id": 2, "customer_id": "8", "name": "Luna"}]
    assert [pet["name"] for pet in session.pets_of(7)] == ["Thor"]
    assert [pet["name"] for pet in session.pets_of(8)] == ["Luna"]


def test_update_sends_loaded_status(http, session):
    http.request.return_value = make_response(body={
        "booking": {"id": 5, "customer_id": 1, "date": "2025-06-02", "time": "10:00", "status": "confirmado"},
        "status_changed": True,
        "notification_message": "Olá! *CONFIRMADO*",
    })

    result = session.save_booking({"status": "confirmado"}, booking_id=5, loaded_status=BookingStatus.AGENDADO)

    args, kwargs = http.request.call_args
    assert args == ("PUT", "http://api.test/api/bookings/5")
    assert kwargs["json"] == {"status": "confirmado", "loaded_status": "agendado"}
    assert result.status_changed is True
    assert result.booking.status is BookingStatus.CONFIRMADO


def test_notification_for_reads_current_message(http, session):
    http.request.return_value = make_response(body={
        "message": "Olá, Ana! *CONCLUÍDO*",
        "whatsapp_link": "https://wa.me/5511988887777?text=Ol%C3%A1",
        "customer_phone": "11988887777",
    })

    preview = session.notification_for(5)

    args, _ = http.request.call_args
    assert args == ("GET", "http://api.test/api/bookings/5/notification")
    assert preview.message == "Olá, Ana! *CONCLUÍDO*"
    assert preview.whatsapp_link.startswith("https://wa.me/")


def test_submit_flag_clears_after_success_and_failure(http, session):
    assert session.submitting is False
    session.request_submit()
    assert session.submitting is True

    http.request.return_value = make_response(201, {
        "booking": {"id": 9, "customer_id": 1, "date": "2025-06-02", "time": "10:00", "status": "agendado"},
        "status_changed": False,
    })
    result = session.submit_booking({"customer_id": 1, "date": "2025-06-02", "time": "10:00"})
    assert result.booking.id == 9
    assert session.submitting is False

    session.request_submit()
    http.request.return_value = make_response(400, {"error": "slot unavailable, choose another time"})
    with pytest.raises(ApiError):
        session.submit_booking({"customer_id": 1, "date": "2025-06-02", "time": "10:00"})
    assert session.submitting is False
