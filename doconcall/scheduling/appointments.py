import logging
from datetime import datetime, timedelta
from typing import Callable

from doconcall.scheduling import join_window
from doconcall.scheduling.errors import AppointmentNotFound, NotConfirmed, NotParticipant
from doconcall.scheduling.policy import Actor, authorize_transition
from doconcall.scheduling.state_machine import AppointmentStatus, transition
from doconcall.scheduling.store import AtomicUnit, SqlAlchemyStore
from doconcall.scheduling.types import Appointment

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(
        self,
        store: SqlAlchemyStore,
        clock: Callable[[], datetime] = datetime.now,
        window: timedelta | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.window = window

    def get(self, appointment_id: str) -> Appointment:
        appointment = self.store.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFound()
        return appointment

    def update_status(
        self,
        appointment_id: str,
        new_status: str | AppointmentStatus,
        actor: Actor | None = None,
    ) -> Appointment:
        """Apply one validated transition. ``actor`` is checked when given;
        system-triggered updates pass none."""

        def apply(unit: AtomicUnit) -> Appointment:
            appointment = unit.get_appointment(appointment_id)
            if appointment is None:
                raise AppointmentNotFound()
            if actor is not None:
                authorize_transition(actor, appointment)
            status = transition(appointment.status, new_status)
            return unit.set_appointment_status(appointment_id, status, self.clock())

        appointment = self.store.run_atomic(apply)
        logger.info('Appointment %s is now %s', appointment_id, appointment.status.value)
        return appointment

    def list_all(self) -> list[Appointment]:
        return self.store.list_appointments()

    def list_for_client(self, client_id: str) -> list[Appointment]:
        return self.store.list_appointments(client_id=client_id)

    def list_for_doctor(self, doctor_id: str, status: AppointmentStatus | None = None) -> list[Appointment]:
        return self.store.list_appointments(doctor_id=doctor_id, status=status)

    def check_join(
        self,
        appointment_id: str,
        user_id: str,
        now: datetime | None = None,
    ) -> tuple[Appointment, join_window.JoinDecision]:
        appointment = self.get(appointment_id)

        if not appointment.is_participant(user_id):
            raise NotParticipant()
        if appointment.status != AppointmentStatus.CONFIRMED:
            raise NotConfirmed()

        decision = join_window.can_join(now or self.clock(), appointment.slot_start, self.window)
        return appointment, decision
