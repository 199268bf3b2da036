from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from app.services.slot_generator import TimeSlot, as_utc


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end).

    Back-to-back intervals sharing a boundary do not overlap.
    """
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class BusyInterval:
    """A committed, non-cancelled booking as seen by the conflict check.

    Buffers left as ``None`` fall back to the event type's settings.
    """

    start: datetime
    end: datetime
    buffer_before_minutes: int | None = None
    buffer_after_minutes: int | None = None

    def padded(self, default_before_minutes: int, default_after_minutes: int) -> tuple[datetime, datetime]:
        before = self.buffer_before_minutes if self.buffer_before_minutes is not None else default_before_minutes
        after = self.buffer_after_minutes if self.buffer_after_minutes is not None else default_after_minutes
        return (
            as_utc(self.start) - timedelta(minutes=before),
            as_utc(self.end) + timedelta(minutes=after),
        )


def conflicts_with_any(
    start: datetime,
    end: datetime,
    busy: Iterable[BusyInterval],
    buffer_before_minutes: int,
    buffer_after_minutes: int,
) -> bool:
    padded_start = as_utc(start) - timedelta(minutes=buffer_before_minutes)
    padded_end = as_utc(end) + timedelta(minutes=buffer_after_minutes)
    for interval in busy:
        busy_start, busy_end = interval.padded(buffer_before_minutes, buffer_after_minutes)
        if intervals_overlap(padded_start, padded_end, busy_start, busy_end):
            return True
    return False


def violates_minimum_notice(start: datetime, minimum_notice_minutes: int, now: datetime) -> bool:
    return as_utc(start) < as_utc(now) + timedelta(minutes=minimum_notice_minutes)


def filter_available(
    slots: Iterable[TimeSlot],
    existing_bookings: Iterable[BusyInterval],
    buffer_before_minutes: int,
    buffer_after_minutes: int,
    minimum_notice_minutes: int,
    now: datetime,
) -> list[TimeSlot]:
    """Flag each slot as available or not; order and duplicates are kept as given."""
    busy = list(existing_bookings)
    flagged: list[TimeSlot] = []
    for slot in slots:
        available = not (
            violates_minimum_notice(slot.start, minimum_notice_minutes, now)
            or conflicts_with_any(slot.start, slot.end, busy, buffer_before_minutes, buffer_after_minutes)
        )
        flagged.append(replace(slot, available=available))
    return flagged
