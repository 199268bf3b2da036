from datetime import date, time

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.types import TimezoneName, UtcDatetime


class TimeWindow(BaseModel):
    start: time
    end: time

    @model_validator(mode="after")
    def validate_order(self) -> "TimeWindow":
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        return self

    def as_storage(self) -> dict[str, str]:
        return {"start": self.start.strftime("%H:%M"), "end": self.end.strftime("%H:%M")}


class _WindowsPayload(BaseModel):
    windows: list[TimeWindow] = Field(default_factory=list, max_length=24)
    timezone: TimezoneName
    is_active: bool = True

    @field_validator("windows")
    @classmethod
    def windows_must_not_overlap(cls, windows: list[TimeWindow]) -> list[TimeWindow]:
        ordered = sorted(windows, key=lambda window: window.start)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start < previous.end:
                raise ValueError(
                    f"windows {previous.start:%H:%M}-{previous.end:%H:%M} and "
                    f"{current.start:%H:%M}-{current.end:%H:%M} overlap"
                )
        return ordered


class WeekdayAvailabilityRequest(_WindowsPayload):
    pass


class DateOverrideRequest(_WindowsPayload):
    """An empty ``windows`` list closes the day."""


class AvailabilityRuleResponse(BaseModel):
    id: int
    weekday: int | None
    specific_date: date | None
    windows: list[TimeWindow]
    timezone: str
    is_active: bool

    model_config = {"from_attributes": True}


class SlotResponse(BaseModel):
    start: UtcDatetime
    end: UtcDatetime
    available: bool


class AvailabilityEventType(BaseModel):
    id: int
    slug: str
    title: str
    duration: int


class AvailabilityResponse(BaseModel):
    slots: list[SlotResponse]
    date: date
    timezone: str
    event_type: AvailabilityEventType


