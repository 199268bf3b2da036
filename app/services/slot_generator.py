"""Candidate time slots for a calendar day.

Availability rules are resolved to the day's windows (a date override beats
the weekday rule), each window is converted to absolute UTC instants in the
rule's own timezone, and slots of ``duration_minutes`` are stepped through it
every ``slot_interval_minutes``. Nothing here touches storage.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime
    available: bool = True


@dataclass(frozen=True)
class AvailabilityRuleData:
    weekday: int | None
    specific_date: date | None
    windows: tuple[tuple[time, time], ...]
    timezone: str
    is_active: bool = True


# days past this leave no room for UTC conversion plus the conflict search margin
LAST_BOOKABLE_DAY = date.max - timedelta(days=2)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def widget_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7


def resolve_day_rules(day: date, rules: Sequence[AvailabilityRuleData]) -> list[AvailabilityRuleData]:
    active = [rule for rule in rules if rule.is_active]
    overrides = [rule for rule in active if rule.specific_date == day]
    if overrides:
        return overrides
    weekday = widget_weekday(day)
    return [rule for rule in active if rule.specific_date is None and rule.weekday == weekday]


def resolve_day_windows(day: date, rules: Sequence[AvailabilityRuleData]) -> list[tuple[datetime, datetime]]:
    windows: list[tuple[datetime, datetime]] = []
    for rule in resolve_day_rules(day, rules):
        tz = ZoneInfo(rule.timezone)
        for start_time, end_time in rule.windows:
            start_at = datetime.combine(day, start_time, tzinfo=tz).astimezone(UTC)
            end_at = datetime.combine(day, end_time, tzinfo=tz).astimezone(UTC)
            if start_at < end_at:
                windows.append((start_at, end_at))
    windows.sort()
    return windows


class SlotSequence:
    """Lazily yields slots; every iteration starts over from the first window."""

    def __init__(self, windows: Sequence[tuple[datetime, datetime]], duration: timedelta, step: timedelta) -> None:
        self._windows = tuple(windows)
        self._duration = duration
        self._step = step

    def __iter__(self) -> Iterator[TimeSlot]:
        for window_start, window_end in self._windows:
            cursor = window_start
            while cursor + self._duration <= window_end:
                yield TimeSlot(start=cursor, end=cursor + self._duration)
                cursor += self._step

    def __repr__(self) -> str:
        return f"SlotSequence(windows={len(self._windows)}, duration={self._duration}, step={self._step})"


EMPTY = SlotSequence(windows=(), duration=timedelta(0), step=timedelta(minutes=1))


def generate_slots(
    day: date,
    rules: Sequence[AvailabilityRuleData],
    duration_minutes: int,
    slot_interval_minutes: int | None = None,
    *,
    timezone: str = "UTC",
    now: datetime | None = None,
) -> SlotSequence:
    if duration_minutes <= 0:
        return EMPTY

    current_time = as_utc(now) if now else datetime.now(UTC)
    if day < current_time.astimezone(ZoneInfo(timezone)).date() or day > LAST_BOOKABLE_DAY:
        return EMPTY

    windows = resolve_day_windows(day, rules)
    if not windows:
        return EMPTY

    interval = slot_interval_minutes if slot_interval_minutes and slot_interval_minutes > 0 else duration_minutes
    return SlotSequence(
        windows=windows,
        duration=timedelta(minutes=duration_minutes),
        step=timedelta(minutes=interval),
    )
