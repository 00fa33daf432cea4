"""Atomic conversion of a slot and a booking request into an appointment."""

import logging
from datetime import datetime
from typing import Callable

from doconcall.core import config
from doconcall.core.ids import epoch_millis, new_id
from doconcall.scheduling.errors import InvalidNotes, ReservationError, SlotAlreadyBooked, SlotInPast, SlotNotFound
from doconcall.scheduling.state_machine import AppointmentStatus
from doconcall.scheduling.store import AtomicUnit, SqlAlchemyStore
from doconcall.scheduling.types import Appointment

logger = logging.getLogger(__name__)


def build_room_name(prefix: str, appointment_id: str, created_at: datetime) -> str:
    return f'{prefix}-{appointment_id}-{epoch_millis(created_at)}'


def normalize_notes(notes: str | None) -> str | None:
    if notes is None:
        return None

    normalized = notes.strip()
    if not normalized:
        return None

    if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise InvalidNotes(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class ReservationCoordinator:
    """Books slots. Each call is one transaction and is never retried here."""

    def __init__(
        self,
        store: SqlAlchemyStore,
        clock: Callable[[], datetime] = datetime.now,
        id_generator: Callable[[], str] = new_id,
        room_prefix: str | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_generator = id_generator
        self.room_prefix = room_prefix or config.ROOM_NAME_PREFIX

    def book(
        self,
        client_id: str,
        doctor_id: str,
        slot_id: str,
        notes: str | None = None,
        idempotency_key: str | None = None,
    ) -> Appointment:
        """Reserve ``slot_id`` for ``client_id``.

        Checks run in order inside the transaction: the slot exists, it is
        not booked, it starts after now. The booked flag is claimed with a
        conditional update, so of two racing calls only one can commit; the
        other raises ``SlotAlreadyBooked``.

        A repeated ``idempotency_key`` from the same client returns the
        appointment created by the first call.
        """
        notes = normalize_notes(notes)

        def reserve(unit: AtomicUnit) -> Appointment:
            if idempotency_key:
                existing = unit.find_appointment_by_key(client_id, idempotency_key)
                if existing is not None:
                    logger.info('Replaying appointment %s for idempotency key %s', existing.id, idempotency_key)
                    return existing

            slot = unit.get_slot(doctor_id, slot_id)
            if slot is None:
                raise SlotNotFound()
            if slot.booked:
                raise SlotAlreadyBooked()

            now = self.clock()
            if slot.start <= now:
                raise SlotInPast('Cannot book past slots.')

            if not unit.claim_slot(doctor_id, slot_id):
                raise SlotAlreadyBooked()

            appointment_id = self.id_generator()
            appointment = Appointment(
                id=appointment_id,
                client_id=client_id,
                doctor_id=doctor_id,
                slot_id=slot.id,
                slot_start=slot.start,
                slot_end=slot.end,
                status=AppointmentStatus.PENDING,
                room_name=build_room_name(self.room_prefix, appointment_id, now),
                notes=notes,
                idempotency_key=idempotency_key,
                created_at=now,
                updated_at=now,
            )
            unit.add_appointment(appointment)
            return appointment

        try:
            appointment = self.store.run_atomic(reserve)
        except ReservationError as exc:
            logger.warning(
                'Booking of slot %s (doctor %s) by client %s failed: %s',
                slot_id, doctor_id, client_id, exc.kind,
            )
            raise

        logger.info('Booked slot %s for client %s as appointment %s', slot_id, client_id, appointment.id)
        return appointment
