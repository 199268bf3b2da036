from datetime import datetime
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AfterValidator

from app.services.slot_generator import as_utc


def _check_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}") from None
    return value


TimezoneName = Annotated[str, AfterValidator(_check_timezone)]
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

MAX_BUFFER_MINUTES = 720
