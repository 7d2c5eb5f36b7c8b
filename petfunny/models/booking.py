import unicodedata
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator


class BookingStatus(str, Enum):
    AGENDADO = "agendado"
    CONFIRMADO = "confirmado"
    RECEBIDO = "recebido"
    EM_SERVICO = "em_servico"
    CONCLUIDO = "concluido"
    ENTREGUE = "entregue"
    CANCELADO = "cancelado"

    @classmethod
    def _missing_(cls, value):
        # Legacy rows: "em servico", "Em Serviço", "CONFIRMADO"
        if not isinstance(value, str):
            return None
        folded = unicodedata.normalize("NFD", value)
        folded = "".join(c for c in folded if not unicodedata.combining(c))
        folded = folded.strip().lower().replace(" ", "_").replace("-", "_")
        for member in cls:
            if member.value == folded:
                return member
        return None

    @classmethod
    def parse(cls, value) -> Optional["BookingStatus"]:
        """Like BookingStatus(value) but returns None instead of raising."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_active(self) -> bool:
        return self is not BookingStatus.CANCELADO


class BookingCreate(BaseModel):
    customer_id: int
    pet_id: Optional[int] = None
    service_id: Optional[int] = None
    service: str = ""
    date: Optional[str] = None
    time: Optional[str] = None
    prize: str = ""
    status: BookingStatus = BookingStatus.AGENDADO
    notes: str = ""


class BookingUpdate(BaseModel):
    customer_id: Optional[int] = None
    pet_id: Optional[int] = None
    service_id: Optional[int] = None
    service: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    prize: Optional[str] = None
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None
    # Status shown in the form when editing started
    loaded_status: Optional[BookingStatus] = None


class Booking(BaseModel):
    id: int
    customer_id: int
    pet_id: Optional[int] = None
    service_id: Optional[int] = None
    service: str = ""
    date: str
    time: str
    prize: str = ""
    status: BookingStatus = BookingStatus.AGENDADO
    notes: str = ""
    last_notification_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("service", "prize", "notes", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, value):
        return value or BookingStatus.AGENDADO


class AdmissionRequest(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
    exclude_booking_id: Optional[int] = None


class AdmissionResult(BaseModel):
    ok: bool
    reason: Optional[str] = None
    # Canonical HH:MM of the admitted time
    time: Optional[str] = None

    @classmethod
    def admitted(cls, time: str) -> "AdmissionResult":
        return cls(ok=True, time=time)

    @classmethod
    def rejected(cls, reason: str) -> "AdmissionResult":
        return cls(ok=False, reason=reason)


class NotificationContext(BaseModel):
    customer_name: str = ""
    pet_label: str = ""
    service_title: str = ""
    date_br: str = ""
    time: str = ""
    prize_label: str = ""


class BookingSaveResult(BaseModel):
    booking: Booking
    status_changed: bool = False
    notification_message: Optional[str] = None
    whatsapp_link: Optional[str] = None
    customer_phone: Optional[str] = None


class NotificationPreview(BaseModel):
    message: str
    whatsapp_link: Optional[str] = None
    customer_phone: Optional[str] = None
