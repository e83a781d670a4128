"""
Opening hours as one tagged variant, validated once at the boundary.

    {"kind": "structured", "days": {"monday": {"open": "08:00", "close": "20:00"}, "sunday": {"closed": true}}}
    {"kind": "text", "text": "Mon-Sat 9 to 9"}
"""
import re
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayHours(BaseModel):
    open: Optional[str] = None
    close: Optional[str] = None
    closed: bool = False

    @model_validator(mode="after")
    def check_times(self) -> "DayHours":
        if self.closed:
            return self
        if not self.open or not self.close:
            raise ValueError("open and close are required unless the day is closed")
        for value in (self.open, self.close):
            if not _HHMM.match(value):
                raise ValueError(f"'{value}' is not a HH:MM time")
        if self.open >= self.close:
            raise ValueError("close must be after open")
        return self


class StructuredHours(BaseModel):
    kind: Literal["structured"] = "structured"
    days: Dict[str, DayHours]

    @field_validator("days")
    @classmethod
    def known_weekdays(cls, v: Dict[str, DayHours]) -> Dict[str, DayHours]:
        normalized = {}
        for day, hours in v.items():
            key = day.strip().lower()
            if key not in WEEKDAYS:
                raise ValueError(f"Unknown weekday '{day}'")
            normalized[key] = hours
        return normalized


class FreeTextHours(BaseModel):
    kind: Literal["text"] = "text"
    text: str = Field(min_length=1, max_length=500)

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Opening hours text cannot be empty")
        return v.strip()


OpeningHours = Annotated[Union[StructuredHours, FreeTextHours], Field(discriminator="kind")]

opening_hours_adapter = TypeAdapter(OpeningHours)
