from datetime import datetime, timedelta

import pytest

from doconcall.scheduling.appointments import AppointmentService
from doconcall.scheduling.availability import AvailabilityService
from doconcall.scheduling.errors import AppointmentNotFound, IllegalStateTransition, NotConfirmed, NotParticipant
from doconcall.scheduling.policy import ADMIN, CLIENT, DOCTOR, Actor
from doconcall.scheduling.reservation import ReservationCoordinator
from doconcall.scheduling.state_machine import AppointmentStatus
from doconcall.scheduling.types import SlotInput

SLOT_START = datetime(2025, 1, 6, 9, 0)


@pytest.fixture
def service(store, clock) -> AppointmentService:
    return AppointmentService(store, clock=clock, window=timedelta(minutes=5))


@pytest.fixture
def appointment(store, clock):
    slot_id = AvailabilityService(store, clock=clock).create_slot(
        'doctor-d',
        SlotInput(start=SLOT_START, end=SLOT_START + timedelta(minutes=30)),
    )
    return ReservationCoordinator(store, clock=clock).book('client-c', 'doctor-d', slot_id)


def test_update_status_walks_forward(service, appointment, clock) -> None:
    clock.advance(hours=1)
    confirmed = service.update_status(appointment.id, 'confirmed')

    assert confirmed.status == AppointmentStatus.CONFIRMED
    assert confirmed.updated_at == clock.now
    assert confirmed.created_at == appointment.created_at

    completed = service.update_status(appointment.id, AppointmentStatus.COMPLETED)
    assert completed.status == AppointmentStatus.COMPLETED
    assert service.get(appointment.id).status == AppointmentStatus.COMPLETED


def test_update_status_rejects_skipping_confirmation(service, appointment) -> None:
    with pytest.raises(IllegalStateTransition):
        service.update_status(appointment.id, 'completed')

    assert service.get(appointment.id).status == AppointmentStatus.PENDING


def test_cancelled_appointment_is_terminal(service, appointment) -> None:
    service.update_status(appointment.id, 'cancelled')

    for status in AppointmentStatus:
        with pytest.raises(IllegalStateTransition):
            service.update_status(appointment.id, status)


def test_update_status_of_unknown_appointment(service) -> None:
    with pytest.raises(AppointmentNotFound):
        service.update_status('missing', 'confirmed')


@pytest.mark.parametrize(
    'actor',
    [
        Actor(user_id='client-c', role=CLIENT),
        Actor(user_id='doctor-x', role=DOCTOR, approved=True),
    ],
)
def test_update_status_requires_owning_doctor_or_admin(service, appointment, actor: Actor) -> None:
    with pytest.raises(NotParticipant):
        service.update_status(appointment.id, 'confirmed', actor=actor)

    assert service.get(appointment.id).status == AppointmentStatus.PENDING


@pytest.mark.parametrize(
    'actor',
    [
        Actor(user_id='doctor-d', role=DOCTOR, approved=True),
        Actor(user_id='someone', role=ADMIN),
    ],
)
def test_update_status_by_permitted_actor(service, appointment, actor: Actor) -> None:
    assert service.update_status(appointment.id, 'confirmed', actor=actor).status == AppointmentStatus.CONFIRMED


def test_list_views(service, appointment) -> None:
    assert service.list_for_client('client-c') == [appointment]
    assert service.list_for_doctor('doctor-d') == [appointment]
    assert service.list_for_doctor('doctor-d', status=AppointmentStatus.CONFIRMED) == []
    assert service.list_for_client('client-x') == []
    assert service.list_all() == [appointment]


def test_check_join_requires_participant(service, appointment) -> None:
    service.update_status(appointment.id, 'confirmed')

    with pytest.raises(NotParticipant):
        service.check_join(appointment.id, 'stranger', now=SLOT_START)


def test_check_join_requires_confirmed_status(service, appointment) -> None:
    with pytest.raises(NotConfirmed):
        service.check_join(appointment.id, 'client-c', now=SLOT_START)


@pytest.mark.parametrize('user_id', ['client-c', 'doctor-d'])
def test_check_join_inside_window(service, appointment, user_id: str) -> None:
    service.update_status(appointment.id, 'confirmed')

    joined, decision = service.check_join(appointment.id, user_id, now=SLOT_START - timedelta(minutes=4))

    assert decision.allowed
    assert joined.room_name == appointment.room_name


def test_check_join_uses_clock_when_now_is_omitted(service, appointment) -> None:
    service.update_status(appointment.id, 'confirmed')

    _, decision = service.check_join(appointment.id, 'client-c')

    assert not decision.allowed
    assert decision.reason.startswith('Consultation starts in ')
