from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from petfunny.api.deps import get_repository
from petfunny.core.logger import logger
from petfunny.models.schedule import OpeningHoursRule
from petfunny.services.admission import load_opening_hours
from petfunny.services.occupancy import OccupancyIndex
from petfunny.services.repository import BookingRepository
from petfunny.services.slot_grid import compute_slot_grid, rules_by_dow
from petfunny.services.time_utils import clamp_to_range, minutes_to_hhmm

router = APIRouter()


class OpeningHoursPayload(BaseModel):
    opening_hours: List[OpeningHoursRule]

    @field_validator("opening_hours")
    @classmethod
    def _one_rule_per_day(cls, rules):
        dows = [rule.dow for rule in rules]
        if len(dows) != len(set(dows)):
            raise ValueError("each weekday may appear only once")
        return rules


def full_week(rules: List[OpeningHoursRule]) -> List[OpeningHoursRule]:
    """Seven rows, missing weekdays filled in as closed."""
    by_dow = rules_by_dow(rules)
    return [by_dow.get(dow) or OpeningHoursRule(dow=dow, is_closed=True) for dow in range(7)]


@router.get("/opening-hours")
async def get_opening_hours(repository: BookingRepository = Depends(get_repository)):
    rules = await load_opening_hours(repository)
    return {"opening_hours": [rule.model_dump() for rule in full_week(rules)]}


@router.put("/opening-hours")
async def save_opening_hours(req: OpeningHoursPayload, repository: BookingRepository = Depends(get_repository)):
    # Wholesale replacement: days left out of the payload become closed
    rules = full_week(req.opening_hours)
    saved = await repository.save_opening_hours(rules)
    logger.info("🕒 Opening hours replaced")
    return {"opening_hours": [rule.model_dump() for rule in saved]}


@router.get("/availability")
async def get_availability(
    date: date,
    exclude_id: Optional[int] = None,
    repository: BookingRepository = Depends(get_repository),
):
    window = compute_slot_grid(date, await load_opening_hours(repository))
    if window.closed:
        return {"date": date.isoformat(), "closed": True, "slots": [], "occupied": [], "free": []}

    occupied = await OccupancyIndex(repository).used_times(date, exclude_id)
    slots = window.slots
    return {
        "date": date.isoformat(),
        "closed": False,
        "open_time": minutes_to_hhmm(window.start_minutes),
        "close_time": minutes_to_hhmm(window.end_minutes),
        "slots": slots,
        "occupied": sorted(occupied),
        "free": [slot for slot in slots if slot not in occupied],
    }


@router.get("/availability/clamp")
async def clamp_time(date: date, time: str, repository: BookingRepository = Depends(get_repository)):
    window = compute_slot_grid(date, await load_opening_hours(repository))
    return {"date": date.isoformat(), "time": clamp_to_range(time, window)}
