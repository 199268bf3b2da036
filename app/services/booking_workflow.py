"""Step-by-step state of the public booking widget.

The draft is an immutable value rebuilt at every step and kept entirely on the
client side; nothing is reserved until ``confirm`` hands the finished draft to
the admission guard, which trusts none of it.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import TypeVar
from zoneinfo import ZoneInfo

from app.core.exceptions import AdmissionError, SlotTakenError
from app.schemas.booking import PublicBookingRequest
from app.services.slot_generator import TimeSlot, as_utc

T = TypeVar("T")


class WorkflowStep(str, Enum):
    SELECT_SESSION_TYPE = "select_session_type"
    SELECT_DATE_TIME = "select_date_time"
    ENTER_DETAILS = "enter_details"
    REVIEW = "review"
    SUCCESS = "success"


STEP_ORDER = list(WorkflowStep)


class WorkflowError(ValueError):
    pass


@dataclass(frozen=True)
class BookingDraft:
    event_type_id: int | None = None
    slug: str | None = None
    duration_minutes: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    timezone: str | None = None
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    notes: str = ""

    def with_session_type(self, event_type_id: int, slug: str, duration_minutes: int) -> "BookingDraft":
        # a different session type invalidates the chosen time
        return replace(
            self,
            event_type_id=event_type_id,
            slug=slug,
            duration_minutes=duration_minutes,
            start=None,
            end=None,
        )

    def with_slot(self, slot: TimeSlot, timezone: str) -> "BookingDraft":
        return replace(self, start=as_utc(slot.start), end=as_utc(slot.end), timezone=timezone)

    def without_slot(self) -> "BookingDraft":
        return replace(self, start=None, end=None)

    def with_details(self, client_name: str, client_email: str, client_phone: str, notes: str = "") -> "BookingDraft":
        return replace(
            self,
            client_name=client_name.strip(),
            client_email=client_email.strip(),
            client_phone=client_phone.strip(),
            notes=notes.strip(),
        )

    def to_request(self) -> PublicBookingRequest:
        local_date = None
        if self.start is not None:
            local_date = self.start.astimezone(ZoneInfo(self.timezone or "UTC")).date().isoformat()
        return PublicBookingRequest(
            event_type_id=self.event_type_id,
            slug=self.slug,
            start_time=self.start.isoformat() if self.start else None,
            end_time=self.end.isoformat() if self.end else None,
            date=local_date,
            timezone=self.timezone,
            client_name=self.client_name,
            client_email=self.client_email,
            client_phone=self.client_phone,
            notes=self.notes or None,
        )


def _missing_for(step: WorkflowStep, draft: BookingDraft) -> list[str]:
    if step is WorkflowStep.SELECT_SESSION_TYPE:
        return [name for name in ("event_type_id", "slug", "duration_minutes") if getattr(draft, name) is None]
    if step is WorkflowStep.SELECT_DATE_TIME:
        return [name for name in ("start", "end", "timezone") if getattr(draft, name) is None]
    if step is WorkflowStep.ENTER_DETAILS:
        return [name for name in ("client_name", "client_email", "client_phone") if not getattr(draft, name)]
    return []


class BookingWorkflow:
    """SelectSessionType -> SelectDateTime -> EnterDetails -> Review -> Success.

    Forward moves are gated on the current step's fields; ``back`` goes one
    step back from any step except the first and ``Success``. Only ``confirm``
    reaches outside the process.
    """

    def __init__(self, draft: BookingDraft | None = None) -> None:
        self.step = WorkflowStep.SELECT_SESSION_TYPE
        self.draft = draft or BookingDraft()
        self.result = None
        self.last_error: AdmissionError | None = None

    def _require_step(self, *steps: WorkflowStep) -> None:
        if self.step not in steps:
            raise WorkflowError(f"Not allowed in step {self.step.value}")

    def missing_fields(self) -> list[str]:
        return _missing_for(self.step, self.draft)

    def select_session_type(self, event_type_id: int, slug: str, duration_minutes: int) -> None:
        self._require_step(WorkflowStep.SELECT_SESSION_TYPE)
        self.draft = self.draft.with_session_type(event_type_id, slug, duration_minutes)

    def select_slot(self, slot: TimeSlot, timezone: str) -> None:
        self._require_step(WorkflowStep.SELECT_DATE_TIME)
        if not slot.available:
            raise WorkflowError("Selected slot is not available")
        self.draft = self.draft.with_slot(slot, timezone)

    def enter_details(self, client_name: str, client_email: str, client_phone: str, notes: str = "") -> None:
        self._require_step(WorkflowStep.ENTER_DETAILS)
        self.draft = self.draft.with_details(client_name, client_email, client_phone, notes)

    def next_step(self) -> WorkflowStep:
        self._require_step(WorkflowStep.SELECT_SESSION_TYPE, WorkflowStep.SELECT_DATE_TIME, WorkflowStep.ENTER_DETAILS)
        missing = self.missing_fields()
        if missing:
            raise WorkflowError(f"Missing required fields: {', '.join(missing)}")
        self.step = STEP_ORDER[STEP_ORDER.index(self.step) + 1]
        return self.step

    def back(self) -> WorkflowStep:
        if self.step in (WorkflowStep.SELECT_SESSION_TYPE, WorkflowStep.SUCCESS):
            raise WorkflowError(f"Cannot go back from step {self.step.value}")
        self.step = STEP_ORDER[STEP_ORDER.index(self.step) - 1]
        return self.step

    def confirm(self, admit: Callable[[PublicBookingRequest], T]) -> T:
        """Submit the draft once. Admission errors are recorded and re-raised, never retried."""
        self._require_step(WorkflowStep.REVIEW)
        try:
            result = admit(self.draft.to_request())
        except SlotTakenError as exc:
            self.last_error = exc
            self.draft = self.draft.without_slot()
            self.step = WorkflowStep.SELECT_DATE_TIME
            raise
        except AdmissionError as exc:
            self.last_error = exc
            raise

        self.last_error = None
        self.result = result
        self.step = WorkflowStep.SUCCESS
        return result
