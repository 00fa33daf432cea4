"""SQLAlchemy-backed availability and appointment store.

Rows never leave this module as ORM objects: they are validated into the
frozen records of :mod:`doconcall.scheduling.types`, so a malformed row
surfaces as ``MalformedRecord`` instead of leaking into the core.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from doconcall.models.appointment import Appointment as AppointmentRow
from doconcall.models.slot import Slot as SlotRow
from doconcall.scheduling.errors import MalformedRecord, StoreConflict, StoreUnavailable
from doconcall.scheduling.state_machine import AppointmentStatus
from doconcall.scheduling.types import Appointment, Slot, SlotInput

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _to_slot(row: SlotRow) -> Slot:
    try:
        return Slot.model_validate(row)
    except ValidationError as exc:
        raise MalformedRecord(f'Slot {row.id} failed validation.') from exc


def _to_appointment(row: AppointmentRow) -> Appointment:
    try:
        return Appointment.model_validate(row)
    except ValidationError as exc:
        raise MalformedRecord(f'Appointment {row.id} failed validation.') from exc


@contextmanager
def _translate_errors():
    try:
        yield
    except (IntegrityError, StaleDataError) as exc:
        logger.warning('Store conflict: %s', exc)
        raise StoreConflict() from exc
    except OperationalError as exc:
        logger.exception('Store operation failed.')
        raise StoreUnavailable() from exc
    except SQLAlchemyError as exc:
        logger.exception('Store operation failed.')
        raise StoreUnavailable() from exc


class AtomicUnit:
    """Read/write access bound to one open transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_slot(self, doctor_id: str, slot_id: str) -> Slot | None:
        row = self.session.query(SlotRow).filter(
            SlotRow.id == slot_id,
            SlotRow.doctor_id == doctor_id,
        ).with_for_update().first()
        return _to_slot(row) if row else None

    def claim_slot(self, doctor_id: str, slot_id: str) -> bool:
        """Flip ``booked`` to true unless another transaction already has."""
        updated = self.session.query(SlotRow).filter(
            SlotRow.id == slot_id,
            SlotRow.doctor_id == doctor_id,
            SlotRow.booked.is_(False),
        ).update({SlotRow.booked: True}, synchronize_session=False)
        return updated == 1

    def delete_unbooked_slot(self, doctor_id: str, slot_id: str) -> bool:
        deleted = self.session.query(SlotRow).filter(
            SlotRow.id == slot_id,
            SlotRow.doctor_id == doctor_id,
            SlotRow.booked.is_(False),
        ).delete(synchronize_session=False)
        return deleted == 1

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        row = self.session.query(AppointmentRow).filter(
            AppointmentRow.id == appointment_id,
        ).with_for_update().first()
        return _to_appointment(row) if row else None

    def find_appointment_by_key(self, client_id: str, idempotency_key: str) -> Appointment | None:
        row = self.session.query(AppointmentRow).filter(
            AppointmentRow.client_id == client_id,
            AppointmentRow.idempotency_key == idempotency_key,
        ).first()
        return _to_appointment(row) if row else None

    def add_appointment(self, appointment: Appointment) -> None:
        values = appointment.model_dump()
        values['status'] = appointment.status.value
        self.session.add(AppointmentRow(**values))
        self.session.flush()

    def set_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        updated_at: datetime,
    ) -> Appointment:
        row = self.session.get(AppointmentRow, appointment_id)
        row.status = status.value
        row.updated_at = updated_at
        self.session.flush()
        return _to_appointment(row)


class SqlAlchemyStore:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def run_atomic(self, fn: Callable[[AtomicUnit], T]) -> T:
        """Run ``fn`` in one transaction; all of its writes commit or none do."""
        session = self.session_factory()
        try:
            with _translate_errors():
                with session.begin():
                    return fn(AtomicUnit(session))
        finally:
            session.close()

    def get_slot(self, doctor_id: str, slot_id: str) -> Slot | None:
        session = self.session_factory()
        try:
            with _translate_errors():
                row = session.query(SlotRow).filter(
                    SlotRow.id == slot_id,
                    SlotRow.doctor_id == doctor_id,
                ).first()
                return _to_slot(row) if row else None
        finally:
            session.close()

    def get_appointment(self, appointment_id: str) -> Appointment | None:
        session = self.session_factory()
        try:
            with _translate_errors():
                row = session.get(AppointmentRow, appointment_id)
                return _to_appointment(row) if row else None
        finally:
            session.close()

    def add_slot(self, doctor_id: str, slot_id: str, slot_input: SlotInput, created_at: datetime) -> Slot:
        session = self.session_factory()
        try:
            with _translate_errors():
                row = SlotRow(
                    id=slot_id,
                    doctor_id=doctor_id,
                    start=slot_input.start,
                    end=slot_input.end,
                    booked=False,
                    created_at=created_at,
                )
                session.add(row)
                session.commit()
                return _to_slot(row)
        finally:
            session.close()

    def list_slots(
        self,
        doctor_id: str,
        future_only: bool = False,
        unbooked_only: bool = False,
        now: datetime | None = None,
    ) -> list[Slot]:
        session = self.session_factory()
        try:
            with _translate_errors():
                query = session.query(SlotRow).filter(SlotRow.doctor_id == doctor_id)
                if unbooked_only:
                    query = query.filter(SlotRow.booked.is_(False))
                if future_only:
                    query = query.filter(SlotRow.start > (now or datetime.now()))
                return [_to_slot(row) for row in query.order_by(SlotRow.start.asc()).all()]
        finally:
            session.close()

    def list_appointments(
        self,
        client_id: str | None = None,
        doctor_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        session = self.session_factory()
        try:
            with _translate_errors():
                query = session.query(AppointmentRow)
                if client_id is not None:
                    query = query.filter(AppointmentRow.client_id == client_id)
                if doctor_id is not None:
                    query = query.filter(AppointmentRow.doctor_id == doctor_id)
                if status is not None:
                    query = query.filter(AppointmentRow.status == status.value)
                rows = query.order_by(AppointmentRow.slot_start.desc()).all()
                return [_to_appointment(row) for row in rows]
        finally:
            session.close()
