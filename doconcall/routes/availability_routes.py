from dataclasses import asdict
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator

from doconcall.auth.dependencies import get_current_actor
from doconcall.routes.common import ensure_database_ready, get_store, to_http_exception
from doconcall.scheduling.availability import AvailabilityService
from doconcall.scheduling.errors import ReservationError
from doconcall.scheduling.policy import Actor, authorize_slot_management
from doconcall.scheduling.slot_generator import CLOCK_TIME_PATTERN
from doconcall.scheduling.store import SqlAlchemyStore
from doconcall.scheduling.types import RecurringSlotConfig, SlotInput

router = APIRouter(tags=['availability'])


class CreateSlotRequest(BaseModel):
    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def drop_sub_minute_precision(cls, value: datetime) -> datetime:
        return value.replace(second=0, microsecond=0)


class RecurringSlotsRequest(BaseModel):
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    days_of_week: list[int]
    duration_minutes: int

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock_time(cls, value: str) -> str:
        normalized = value.strip()
        if not CLOCK_TIME_PATTERN.match(normalized):
            raise ValueError('Time must be in HH:MM format (24-hour).')
        return normalized

    @field_validator('days_of_week')
    @classmethod
    def validate_days_of_week(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError('At least one day of week must be selected.')
        if any(day < 0 or day > 6 for day in value):
            raise ValueError('Days of week must be between 0 (Sunday) and 6 (Saturday).')
        return sorted(set(value))

    def to_config(self) -> RecurringSlotConfig:
        return RecurringSlotConfig(
            start_date=self.start_date,
            end_date=self.end_date,
            start_time=self.start_time,
            end_time=self.end_time,
            days_of_week=frozenset(self.days_of_week),
            duration_minutes=self.duration_minutes,
        )


class CreateSlotResponse(BaseModel):
    id: str


class SlotResponse(BaseModel):
    id: str
    doctor_id: str
    start: datetime
    end: datetime
    booked: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SlotCreationResponse(BaseModel):
    created: list[str]
    succeeded: int
    failed: int


def get_availability_service(store: SqlAlchemyStore = Depends(get_store)) -> AvailabilityService:
    return AvailabilityService(store)


@router.post('/{doctor_id}/slots', response_model=CreateSlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    doctor_id: str,
    data: CreateSlotRequest,
    actor: Actor = Depends(get_current_actor),
    service: AvailabilityService = Depends(get_availability_service),
):
    ensure_database_ready()

    try:
        authorize_slot_management(actor, doctor_id)
        slot_id = service.create_slot(doctor_id, SlotInput(start=data.start, end=data.end))
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return CreateSlotResponse(id=slot_id)


@router.post(
    '/{doctor_id}/slots/recurring',
    response_model=SlotCreationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_recurring_slots(
    doctor_id: str,
    data: RecurringSlotsRequest,
    actor: Actor = Depends(get_current_actor),
    service: AvailabilityService = Depends(get_availability_service),
):
    ensure_database_ready()

    try:
        authorize_slot_management(actor, doctor_id)
        result = service.generate_recurring_slots(doctor_id, data.to_config())
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return SlotCreationResponse(**asdict(result))


@router.delete('/{doctor_id}/slots/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    doctor_id: str,
    slot_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AvailabilityService = Depends(get_availability_service),
):
    ensure_database_ready()

    try:
        authorize_slot_management(actor, doctor_id)
        service.delete_slot(doctor_id, slot_id)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{doctor_id}/slots', response_model=list[SlotResponse])
def list_slots(
    doctor_id: str,
    future_only: bool = Query(default=True),
    unbooked_only: bool = Query(default=True),
    service: AvailabilityService = Depends(get_availability_service),
):
    ensure_database_ready()

    try:
        slots = service.list_slots(doctor_id, future_only=future_only, unbooked_only=unbooked_only)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return [SlotResponse.model_validate(slot.model_dump()) for slot in slots]
