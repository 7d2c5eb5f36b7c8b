from datetime import datetime
from typing import Callable

from fastapi import Depends

from petfunny.services.admission import AdmissionValidator, local_now
from petfunny.services.booking_service import BookingService
from petfunny.services.db_service import db_service
from petfunny.services.repository import BookingRepository


def get_repository() -> BookingRepository:
    return db_service


def get_clock() -> Callable[[], datetime]:
    return local_now


def get_validator(
    repository: BookingRepository = Depends(get_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AdmissionValidator:
    return AdmissionValidator(repository, clock=clock)


def get_booking_service(
    repository: BookingRepository = Depends(get_repository),
    validator: AdmissionValidator = Depends(get_validator),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingService:
    return BookingService(repository, validator=validator, clock=clock)
