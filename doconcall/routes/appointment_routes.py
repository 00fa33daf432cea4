from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from doconcall.auth.dependencies import get_current_actor
from doconcall.core import config
from doconcall.routes.common import ensure_database_ready, get_store, to_http_exception
from doconcall.scheduling.appointments import AppointmentService
from doconcall.scheduling.errors import ReservationError
from doconcall.scheduling.join_window import format_time_until_start
from doconcall.scheduling.policy import CLIENT, DOCTOR, Actor, authorize_booking
from doconcall.scheduling.reservation import ReservationCoordinator
from doconcall.scheduling.state_machine import AppointmentStatus
from doconcall.scheduling.store import SqlAlchemyStore

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    doctor_id: str = Field(min_length=1, max_length=128)
    slot_id: str = Field(min_length=1, max_length=128)
    notes: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=128)

    @field_validator('doctor_id', 'slot_id')
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Identifier is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def normalize_status(cls, value: str) -> str:
        return value.strip().lower()


class AppointmentResponse(BaseModel):
    id: str
    client_id: str
    doctor_id: str
    slot_start: datetime
    slot_end: datetime
    status: AppointmentStatus
    room_name: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JoinResponse(BaseModel):
    allowed: bool
    reason: str | None = None
    ms_until_start: int
    time_until_start: str | None = None
    room_name: str | None = None


def get_reservation_coordinator(store: SqlAlchemyStore = Depends(get_store)) -> ReservationCoordinator:
    return ReservationCoordinator(store)


def get_appointment_service(store: SqlAlchemyStore = Depends(get_store)) -> AppointmentService:
    return AppointmentService(store)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: CreateAppointmentRequest,
    actor: Actor = Depends(get_current_actor),
    coordinator: ReservationCoordinator = Depends(get_reservation_coordinator),
):
    ensure_database_ready()

    try:
        authorize_booking(actor)
        appointment = coordinator.book(
            client_id=actor.user_id,
            doctor_id=data.doctor_id,
            slot_id=data.slot_id,
            notes=data.notes,
            idempotency_key=data.idempotency_key,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return AppointmentResponse.model_validate(appointment.model_dump())


@router.get('', response_model=list[AppointmentResponse])
def list_my_appointments(
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    ensure_database_ready()

    try:
        if actor.role == CLIENT:
            appointments = service.list_for_client(actor.user_id)
        elif actor.role == DOCTOR:
            appointments = service.list_for_doctor(actor.user_id)
        else:
            appointments = service.list_all()
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return [AppointmentResponse.model_validate(appointment.model_dump()) for appointment in appointments]


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    data: UpdateStatusRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    ensure_database_ready()

    try:
        appointment = service.update_status(appointment_id, data.status, actor=actor)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return AppointmentResponse.model_validate(appointment.model_dump())


@router.get('/{appointment_id}/join', response_model=JoinResponse)
def join_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    ensure_database_ready()

    try:
        appointment, decision = service.check_join(appointment_id, actor.user_id)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return JoinResponse(
        allowed=decision.allowed,
        reason=decision.reason,
        ms_until_start=decision.ms_until_start,
        time_until_start=format_time_until_start(decision.ms_until_start) if decision.ms_until_start > 0 else None,
        room_name=appointment.room_name if decision.allowed else None,
    )
