from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from petfunny.core.logger import logger


class CustomerIn(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    notes: str = ""

    @field_validator("name", "phone")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PetIn(BaseModel):
    customer_id: int
    name: str = Field(min_length=1)
    breed: str = ""
    size: str = ""
    coat: str = ""
    notes: str = ""


class ServiceIn(BaseModel):
    date: str
    category: str = Field(min_length=1)
    title: str = Field(min_length=1)
    porte: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    value_cents: int = Field(ge=0)

    @field_validator("date")
    @classmethod
    def _date_only(cls, value: str) -> str:
        return value[:10]


class MimoIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    value_cents: int = Field(default=0, ge=0)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True

    def is_available(self, at: datetime) -> bool:
        return _within_period(self.is_active, self.starts_at, self.ends_at, at)


def _within_period(is_active: bool, starts_at: Optional[datetime], ends_at: Optional[datetime], at: datetime) -> bool:
    """Active flag set and `at` inside the optional [starts_at, ends_at] period."""
    if not is_active:
        return False
    starts_at, ends_at = _align_tz(starts_at, at), _align_tz(ends_at, at)
    if starts_at and at < starts_at:
        return False
    if ends_at and at > ends_at:
        return False
    return True


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or value == "" or isinstance(value, datetime):
        return value or None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def mimo_row_is_available(row: Dict[str, Any], at: datetime) -> bool:
    """
    Availability of a stored mimo row without re-validating the whole record.
    Legacy rows with a blank title still list; an unreadable period bound hides the row.
    """
    for column in ("starts_at", "ends_at"):
        if row.get(column) not in (None, "") and _parse_timestamp(row[column]) is None:
            logger.warning(f"⚠️ Mimo {row.get('id')} has unreadable {column} {row[column]!r}, hiding it")
            return False
    return _within_period(
        row.get("is_active") is not False,
        _parse_timestamp(row.get("starts_at")),
        _parse_timestamp(row.get("ends_at")),
        at,
    )


def _align_tz(value: Optional[datetime], reference: datetime) -> Optional[datetime]:
    # Naive values typed in the admin form are local to the reference clock
    if value is not None and value.tzinfo is None and reference.tzinfo is not None:
        return value.replace(tzinfo=reference.tzinfo)
    return value


class DogBreedIn(BaseModel):
    name: str = Field(min_length=1)
    history: str = ""
    size: str = ""
    coat: str = ""
    characteristics: str = ""
    is_active: bool = True
