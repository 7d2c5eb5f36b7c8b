from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from petfunny.api.deps import get_booking_service, get_validator
from petfunny.models.booking import AdmissionRequest, BookingCreate, BookingStatus, BookingUpdate
from petfunny.services.admission import AdmissionValidator
from petfunny.services.booking_service import BookingService

router = APIRouter()


@router.post("/bookings/validate")
async def validate_admission(req: AdmissionRequest, validator: AdmissionValidator = Depends(get_validator)):
    result = await validator.validate(req.date, req.time, exclude_booking_id=req.exclude_booking_id)
    return result.model_dump()


@router.get("/bookings")
async def list_bookings(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    status: Optional[BookingStatus] = None,
    q: str = "",
    service: BookingService = Depends(get_booking_service),
):
    rows = await service.list_bookings(date_from, date_to, status, q)
    return {"bookings": rows}


@router.get("/bookings/{booking_id}")
async def get_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    return {"booking": await service.get_booking(booking_id)}


@router.post("/bookings", status_code=201)
async def create_booking(req: BookingCreate, service: BookingService = Depends(get_booking_service)):
    result = await service.create_booking(req)
    return result.model_dump(mode="json")


@router.put("/bookings/{booking_id}")
async def update_booking(booking_id: int, req: BookingUpdate, service: BookingService = Depends(get_booking_service)):
    result = await service.update_booking(booking_id, req)
    return result.model_dump(mode="json")


@router.delete("/bookings/{booking_id}")
async def delete_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    return {"deleted": await service.delete_booking(booking_id)}


@router.get("/bookings/{booking_id}/notification")
async def get_booking_notification(booking_id: int, service: BookingService = Depends(get_booking_service)):
    preview = await service.notification_for(booking_id)
    return preview.model_dump()
