import unicodedata
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from petfunny.core.errors import BookingRejected, NotFoundError, StorageError
from petfunny.core.logger import logger
from petfunny.models.booking import (
    Booking,
    BookingCreate,
    BookingSaveResult,
    BookingStatus,
    BookingUpdate,
    NotificationContext,
    NotificationPreview,
)
from petfunny.services.admission import AdmissionValidator, local_now
from petfunny.services.notification_service import (
    build_notification_message,
    build_whatsapp_link,
)
from petfunny.services.repository import BookingRepository
from petfunny.services.time_utils import format_date_br, normalize_time_string, parse_iso_date


def norm_str(value) -> str:
    """Accent-free lowercase text used by the listing search."""
    folded = unicodedata.normalize("NFD", str(value or ""))
    return "".join(c for c in folded if not unicodedata.combining(c)).lower().strip()


class BookingService:
    def __init__(
        self,
        repository: BookingRepository,
        validator: Optional[AdmissionValidator] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.repository = repository
        self.clock = clock
        self.validator = validator or AdmissionValidator(repository, clock=clock)

    async def list_bookings(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        q: str = "",
    ) -> List[Dict[str, Any]]:
        rows = await self.repository.list_bookings(date_from, date_to, status.value if status else None)
        needle = norm_str(q)
        if not needle:
            return rows

        searchable = ("customer_name", "customer_phone", "pet_name", "service", "service_title", "notes")
        return [row for row in rows if any(needle in norm_str(row.get(key)) for key in searchable)]

    async def get_booking(self, booking_id: int) -> Dict[str, Any]:
        row = await self.repository.get_booking(booking_id)
        if row is None:
            raise NotFoundError("Booking", booking_id)
        return row

    async def create_booking(self, payload: BookingCreate) -> BookingSaveResult:
        """
        New bookings start as `agendado` unless the form says otherwise.
        There is no previous status, so no notification is built.
        """
        logger.info(f"📥 Booking request - Date: {payload.date}, Time: {payload.time}")

        admission = await self.validator.validate(payload.date, payload.time)
        if not admission.ok:
            logger.info(f"🚫 Booking rejected: {admission.reason}")
            raise BookingRejected(admission.reason)

        fields = payload.model_dump(mode="json")
        fields["date"] = parse_iso_date(payload.date).isoformat()
        fields["time"] = admission.time

        row = await self.repository.create_booking(fields)
        return BookingSaveResult(booking=Booking.model_validate(row))

    async def update_booking(self, booking_id: int, payload: BookingUpdate) -> BookingSaveResult:
        current = await self.get_booking(booking_id)
        changes = payload.model_dump(mode="json", exclude_unset=True, exclude={"loaded_status"})

        stored_status = BookingStatus.parse(current.get("status")) or BookingStatus.AGENDADO
        new_status = payload.status or stored_status

        new_date = changes.get("date", current.get("date"))
        new_time = changes.get("time", current.get("time"))
        slot_changed = (
            parse_iso_date(new_date) != parse_iso_date(current.get("date"))
            or normalize_time_string(new_time) != normalize_time_string(current.get("time"))
        )
        reactivated = not stored_status.is_active and new_status.is_active

        # Occupancy may have changed since the form was loaded
        if slot_changed or reactivated:
            admission = await self.validator.validate(new_date, new_time, exclude_booking_id=booking_id)
            if not admission.ok:
                logger.info(f"🚫 Update of booking {booking_id} rejected: {admission.reason}")
                raise BookingRejected(admission.reason)
            changes["date"] = parse_iso_date(new_date).isoformat()
            changes["time"] = admission.time
        else:
            changes.pop("date", None)
            changes.pop("time", None)

        # Only a status the user actually sent can count as a transition
        baseline = payload.loaded_status or stored_status
        status_changed = payload.status is not None and payload.status is not baseline
        changes["status"] = new_status.value
        if status_changed:
            changes["last_notification_at"] = self.clock().isoformat()
            logger.info(f"🔔 Booking {booking_id}: {baseline.value} -> {new_status.value}")

        row = await self.repository.update_booking(booking_id, changes)
        booking = Booking.model_validate(row)

        if not status_changed:
            return BookingSaveResult(booking=booking)

        ctx, phone = await self.notification_context(booking)
        message = build_notification_message(new_status, ctx)
        return BookingSaveResult(
            booking=booking,
            status_changed=True,
            notification_message=message,
            whatsapp_link=build_whatsapp_link(phone, message) or None,
            customer_phone=phone or None,
        )

    async def delete_booking(self, booking_id: int) -> bool:
        await self.get_booking(booking_id)
        return await self.repository.delete_booking(booking_id)

    async def notification_context(self, booking: Booking):
        """
        Gathers the labels used in the customer message.
        The booking is already saved at this point, so lookup failures only blank a label.
        """
        customer, pet, service, mimo = {}, {}, {}, {}
        try:
            customer = await self.repository.get_record("customers", booking.customer_id) or {}
            if booking.pet_id:
                pet = await self.repository.get_record("pets", booking.pet_id) or {}
            if booking.service_id:
                service = await self.repository.get_record("services", booking.service_id) or {}
            if booking.prize.isdigit():
                mimo = await self.repository.get_record("mimos", int(booking.prize)) or {}
        except StorageError as e:
            logger.warning(f"⚠️ Could not load notification labels for booking {booking.id}: {e}")

        ctx = NotificationContext(
            customer_name=customer.get("name", ""),
            pet_label=pet.get("name", ""),
            service_title=service.get("title") or booking.service,
            date_br=format_date_br(booking.date),
            time=normalize_time_string(booking.time) or booking.time,
            prize_label=mimo.get("title") or ("" if booking.prize.isdigit() else booking.prize),
        )
        return ctx, customer.get("phone", "")

    async def notification_for(self, booking_id: int) -> NotificationPreview:
        """Message for the booking's current status, for re-sending by hand."""
        booking = Booking.model_validate(await self.get_booking(booking_id))
        ctx, phone = await self.notification_context(booking)
        message = build_notification_message(booking.status, ctx)
        return NotificationPreview(
            message=message,
            whatsapp_link=build_whatsapp_link(phone, message) or None,
            customer_phone=phone or None,
        )
