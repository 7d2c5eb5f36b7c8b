"""
State of one admin console session.

The console never talks to storage directly: everything goes through the
REST API with a bounded timeout. Caches are refreshed only by the explicit
reload_* calls, and a failed reload keeps the last good value.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Set

import requests

from petfunny.core.config import settings
from petfunny.core.logger import logger
from petfunny.models.booking import AdmissionResult, BookingSaveResult, BookingStatus, NotificationPreview
from petfunny.models.schedule import OpeningHoursRule, SlotWindow
from petfunny.services.slot_grid import compute_slot_grid
from petfunny.services.time_utils import clamp_to_range


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable


class AdminApiClient:
    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        token: str = settings.ADMIN_TOKEN,
        timeout: float = settings.REQUEST_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()
        if token:
            self.http.headers["X-Admin-Token"] = token

    def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"⚠️ {method} {path} failed: {e}")
            raise ApiError("Server unreachable, please try again.", retryable=True) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) and data.get("error") else None
            raise ApiError(
                message or f"Request failed (HTTP {response.status_code})",
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        return data or {}

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        clean = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        return self.request("GET", path, params=clean)

    def post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", path, json=body)

    def put(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", path, json=body)

    def delete(self, path: str) -> Dict[str, Any]:
        return self.request("DELETE", path)


class AdminSession:
    def __init__(self, client: AdminApiClient):
        self.client = client
        self.opening_hours: List[OpeningHoursRule] = []
        self.occupancy: Dict[date, Set[str]] = {}
        self.bookings: List[Dict[str, Any]] = []
        self.customers: List[Dict[str, Any]] = []
        self.pets: List[Dict[str, Any]] = []
        self.services: List[Dict[str, Any]] = []
        self.mimos: List[Dict[str, Any]] = []
        self.submitting = False
        self.last_error: Optional[str] = None

    def _failed(self, what: str, error: ApiError) -> bool:
        self.last_error = error.message
        logger.warning(f"⚠️ Keeping cached {what}: {error.message}")
        return False

    # --- Reloads ---

    def reload_opening_hours(self) -> bool:
        try:
            data = self.client.get("/api/opening-hours")
        except ApiError as e:
            return self._failed("opening hours", e)
        self.opening_hours = [OpeningHoursRule.model_validate(row) for row in data.get("opening_hours", [])]
        self.last_error = None
        return True

    def reload_occupancy(self, day: date, exclude_booking_id: Optional[int] = None) -> bool:
        try:
            data = self.client.get("/api/availability", {"date": day.isoformat(), "exclude_id": exclude_booking_id})
        except ApiError as e:
            return self._failed("occupancy", e)
        self.occupancy[day] = set(data.get("occupied", []))
        self.last_error = None
        return True

    def reload_reference_data(self) -> bool:
        try:
            customers = self.client.get("/api/customers").get("customers", [])
            pets = self.client.get("/api/pets").get("pets", [])
            services = self.client.get("/api/services").get("services", [])
            mimos = self.client.get("/api/mimos", {"active": "true"}).get("mimos", [])
        except ApiError as e:
            return self._failed("reference data", e)
        self.customers, self.pets, self.services, self.mimos = customers, pets, services, mimos
        self.last_error = None
        return True

    def reload_bookings(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        q: str = "",
    ) -> bool:
        params = {
            "from": date_from.isoformat() if date_from else None,
            "to": date_to.isoformat() if date_to else None,
            "status": status.value if status else None,
            "q": q,
        }
        try:
            data = self.client.get("/api/bookings", params)
        except ApiError as e:
            return self._failed("bookings", e)
        self.bookings = data.get("bookings", [])
        self.last_error = None
        return True

    # --- Local computations on the cached state ---

    def window_for(self, day: date) -> SlotWindow:
        return compute_slot_grid(day, self.opening_hours)

    def clamp_time(self, day: date, raw: str) -> Optional[str]:
        """Blur correction for the time input; admission still decides on submit."""
        return clamp_to_range(raw, self.window_for(day))

    def free_slots(self, day: date) -> List[str]:
        used = self.occupancy.get(day, set())
        return [slot for slot in self.window_for(day).slots if slot not in used]

    def pets_of(self, customer_id: int) -> List[Dict[str, Any]]:
        return [pet for pet in self.pets if str(pet.get("customer_id")) == str(customer_id)]

    # --- Server calls ---

    def validate_admission(self, day: date, time: str, exclude_booking_id: Optional[int] = None) -> AdmissionResult:
        data = self.client.post(
            "/api/bookings/validate",
            {"date": day.isoformat() if day else None, "time": time, "exclude_booking_id": exclude_booking_id},
        )
        return AdmissionResult.model_validate(data)

    def save_booking(
        self,
        fields: Dict[str, Any],
        booking_id: Optional[int] = None,
        loaded_status: Optional[BookingStatus] = None,
    ) -> BookingSaveResult:
        if booking_id is None:
            data = self.client.post("/api/bookings", fields)
        else:
            body = dict(fields)
            if loaded_status is not None:
                body["loaded_status"] = loaded_status.value
            data = self.client.put(f"/api/bookings/{booking_id}", body)
        return BookingSaveResult.model_validate(data)

    def save_opening_hours(self, rules: List[OpeningHoursRule]) -> List[OpeningHoursRule]:
        data = self.client.put("/api/opening-hours", {"opening_hours": [rule.model_dump() for rule in rules]})
        self.opening_hours = [OpeningHoursRule.model_validate(row) for row in data.get("opening_hours", [])]
        return self.opening_hours

    def notification_for(self, booking_id: int) -> NotificationPreview:
        return NotificationPreview.model_validate(self.client.get(f"/api/bookings/{booking_id}/notification"))

    # --- New booking submit ---

    def request_submit(self):
        """Button callback; runs before the rerun so the button renders disabled."""
        self.submitting = True

    def submit_booking(self, fields: Dict[str, Any]) -> BookingSaveResult:
        try:
            return self.save_booking(fields)
        finally:
            self.submitting = False
