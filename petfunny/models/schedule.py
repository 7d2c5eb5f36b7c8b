from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator

from petfunny.services.time_utils import (
    normalize_and_validate_half_hour,
    hhmm_to_minutes,
    build_slot_range,
)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class OpeningHoursRule(BaseModel):
    dow: int = Field(ge=0, le=6)
    is_closed: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    max_per_half_hour: Optional[int] = Field(default=None, ge=0)

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def _half_hour_time(cls, value):
        if value is None or value == "":
            return None
        normalized = normalize_and_validate_half_hour(value)
        if normalized is None:
            raise ValueError(f"'{value}' is not a half-hour aligned time")
        return normalized

    @model_validator(mode="after")
    def _check_invariants(self):
        if self.is_closed:
            # A closed day never carries hours or capacity
            self.open_time = None
            self.close_time = None
            self.max_per_half_hour = 0
            return self

        if self.open_time is None or self.close_time is None:
            raise ValueError("open days need both open_time and close_time")
        if hhmm_to_minutes(self.close_time) < hhmm_to_minutes(self.open_time):
            raise ValueError("close_time must not be earlier than open_time")
        if not self.max_per_half_hour:
            self.max_per_half_hour = 1
        return self


class SlotWindow(BaseModel):
    closed: bool
    start_minutes: Optional[int] = None
    end_minutes: Optional[int] = None

    @property
    def slots(self) -> List[str]:
        if self.closed:
            return []
        return build_slot_range(self.start_minutes, self.end_minutes)


def default_opening_hours() -> List[OpeningHoursRule]:
    """Mon-Fri 07:30-17:30, Sat 07:30-13:00, Sun closed."""
    rules = [OpeningHoursRule(dow=0, is_closed=True)]
    for dow in range(1, 6):
        rules.append(OpeningHoursRule(dow=dow, open_time="07:30", close_time="17:30", max_per_half_hour=1))
    rules.append(OpeningHoursRule(dow=6, open_time="07:30", close_time="13:00", max_per_half_hour=1))
    return rules
