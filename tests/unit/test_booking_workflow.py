from datetime import UTC, datetime

import pytest

from app.core.exceptions import BookingValidationError, SlotTakenError
from app.services.booking_workflow import BookingDraft, BookingWorkflow, WorkflowError, WorkflowStep
from app.services.slot_generator import TimeSlot

SLOT = TimeSlot(
    start=datetime(2026, 10, 26, 14, 0, tzinfo=UTC),
    end=datetime(2026, 10, 26, 14, 30, tzinfo=UTC),
)


def _workflow_at_review() -> BookingWorkflow:
    workflow = BookingWorkflow()
    workflow.select_session_type(3, "portrait", 30)
    workflow.next_step()
    workflow.select_slot(SLOT, "America/New_York")
    workflow.next_step()
    workflow.enter_details("Ada Client", "ada@example.com", "+1 555 0100")
    workflow.next_step()
    return workflow


def test_happy_path_reaches_success_with_one_admission_call():
    calls = []

    def admit(request):
        calls.append(request)
        return {"id": 1}

    workflow = _workflow_at_review()
    assert workflow.step is WorkflowStep.REVIEW

    result = workflow.confirm(admit)

    assert result == {"id": 1}
    assert workflow.step is WorkflowStep.SUCCESS
    assert len(calls) == 1
    assert calls[0].slug == "portrait"
    assert calls[0].date == "2026-10-26"
    assert calls[0].start_time == "2026-10-26T14:00:00+00:00"


def test_forward_move_is_gated_on_step_fields():
    workflow = BookingWorkflow()

    with pytest.raises(WorkflowError, match="event_type_id"):
        workflow.next_step()

    workflow.select_session_type(3, "portrait", 30)
    workflow.next_step()
    assert workflow.missing_fields() == ["start", "end", "timezone"]
    with pytest.raises(WorkflowError):
        workflow.next_step()


def test_unavailable_slot_cannot_be_selected():
    workflow = BookingWorkflow()
    workflow.select_session_type(3, "portrait", 30)
    workflow.next_step()

    with pytest.raises(WorkflowError, match="not available"):
        workflow.select_slot(TimeSlot(start=SLOT.start, end=SLOT.end, available=False), "UTC")


def test_back_moves_one_step_and_keeps_draft():
    workflow = _workflow_at_review()

    assert workflow.back() is WorkflowStep.ENTER_DETAILS
    assert workflow.back() is WorkflowStep.SELECT_DATE_TIME
    assert workflow.draft.start == SLOT.start
    assert workflow.back() is WorkflowStep.SELECT_SESSION_TYPE
    with pytest.raises(WorkflowError):
        workflow.back()


def test_changing_session_type_clears_chosen_slot():
    workflow = _workflow_at_review()
    workflow.back()
    workflow.back()
    workflow.back()

    workflow.select_session_type(4, "wedding", 60)

    assert workflow.draft.start is None
    assert workflow.draft.client_name == "Ada Client"


def test_slot_taken_sends_user_back_to_pick_a_new_time():
    def admit(_request):
        raise SlotTakenError()

    workflow = _workflow_at_review()

    with pytest.raises(SlotTakenError):
        workflow.confirm(admit)

    assert workflow.step is WorkflowStep.SELECT_DATE_TIME
    assert workflow.draft.start is None
    assert isinstance(workflow.last_error, SlotTakenError)


def test_other_admission_errors_stay_in_review():
    def admit(_request):
        raise BookingValidationError(details=["Valid email address is required"])

    workflow = _workflow_at_review()

    with pytest.raises(BookingValidationError):
        workflow.confirm(admit)

    assert workflow.step is WorkflowStep.REVIEW
    assert workflow.draft.start == SLOT.start


def test_confirm_outside_review_is_refused():
    workflow = BookingWorkflow()

    with pytest.raises(WorkflowError):
        workflow.confirm(lambda request: request)


def test_draft_is_immutable():
    draft = BookingDraft()

    with pytest.raises(AttributeError):
        draft.slug = "portrait"
