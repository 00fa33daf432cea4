import pytest

from doconcall.scheduling.errors import IllegalStateTransition
from doconcall.scheduling.state_machine import AppointmentStatus, can_transition, is_terminal, transition


def test_forward_progression_is_allowed() -> None:
    status = transition(AppointmentStatus.PENDING, 'confirmed')
    status = transition(status, AppointmentStatus.COMPLETED)

    assert status == AppointmentStatus.COMPLETED


@pytest.mark.parametrize('current', [AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED])
def test_cancellation_is_allowed_before_completion(current: AppointmentStatus) -> None:
    assert transition(current, 'cancelled') == AppointmentStatus.CANCELLED


def test_pending_cannot_skip_to_completed() -> None:
    with pytest.raises(IllegalStateTransition) as exception_info:
        transition(AppointmentStatus.PENDING, AppointmentStatus.COMPLETED)

    assert exception_info.value.current == 'pending'
    assert exception_info.value.requested == 'completed'
    assert exception_info.value.detail == 'Cannot change appointment status from pending to completed.'


@pytest.mark.parametrize('current', [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
@pytest.mark.parametrize('requested', list(AppointmentStatus))
def test_terminal_states_reject_every_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    assert is_terminal(current)
    with pytest.raises(IllegalStateTransition):
        transition(current, requested)


def test_same_state_is_not_a_transition() -> None:
    assert not can_transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CONFIRMED)
    with pytest.raises(IllegalStateTransition):
        transition(AppointmentStatus.CONFIRMED, 'confirmed')


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(IllegalStateTransition) as exception_info:
        transition(AppointmentStatus.PENDING, 'archived')

    assert exception_info.value.requested == 'archived'
