from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class _LocationBase(BaseModel):
    display_location_publicly: bool = False


class ZoomLocation(_LocationBase):
    type: Literal["zoom"] = "zoom"


class VideoLocation(_LocationBase):
    type: Literal["video"] = "video"
    link: str = Field(min_length=1, max_length=500)


class LinkLocation(_LocationBase):
    type: Literal["link"] = "link"
    link: str = Field(min_length=1, max_length=500)


class PhoneLocation(_LocationBase):
    type: Literal["phone"] = "phone"
    phone: str = Field(min_length=3, max_length=40)


class InPersonLocation(_LocationBase):
    type: Literal["in_person"] = "in_person"
    address: str = Field(min_length=1, max_length=500)


class CustomLocation(_LocationBase):
    type: Literal["custom"] = "custom"
    text: str = Field(min_length=1, max_length=500)


Location = Annotated[
    Union[ZoomLocation, VideoLocation, LinkLocation, PhoneLocation, InPersonLocation, CustomLocation],
    Field(discriminator="type"),
]

Weekday = Literal["MO", "TU", "WE", "TH", "FR", "SA", "SU"]


class RecurringEvent(BaseModel):
    freq: Literal["DAILY", "WEEKLY", "MONTHLY", "YEARLY"] = "WEEKLY"
    interval: int = Field(default=1, ge=1, le=365)
    count: int | None = Field(default=None, ge=1, le=730)
    until: datetime | None = None
    byweekday: list[Weekday] = Field(default_factory=list)
    bymonthday: list[Annotated[int, Field(ge=1, le=31)]] = Field(default_factory=list)
