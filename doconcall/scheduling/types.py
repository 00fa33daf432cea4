"""Typed records exchanged with the storage layer and callers."""

from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import BaseModel, model_validator

from doconcall.scheduling.state_machine import AppointmentStatus


class Slot(BaseModel):
    id: str
    doctor_id: str
    start: datetime
    end: datetime
    booked: bool
    created_at: datetime

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode='after')
    def check_range(self) -> 'Slot':
        if self.start >= self.end:
            raise ValueError('Slot start must be before its end.')
        return self


class Appointment(BaseModel):
    id: str
    client_id: str
    doctor_id: str
    slot_id: str
    slot_start: datetime
    slot_end: datetime
    status: AppointmentStatus
    room_name: str
    notes: str | None = None
    idempotency_key: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode='after')
    def check_range(self) -> 'Appointment':
        if self.slot_start >= self.slot_end:
            raise ValueError('Appointment start must be before its end.')
        return self

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.doctor_id)


@dataclass(frozen=True)
class SlotInput:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class RecurringSlotConfig:
    """Bulk availability: every ``days_of_week`` day (0 = Sunday) in the
    inclusive date range, split into ``duration_minutes`` pieces between
    ``start_time`` and ``end_time`` ("HH:MM", 24-hour)."""

    start_date: date
    end_date: date
    start_time: str
    end_time: str
    days_of_week: frozenset[int]
    duration_minutes: int


@dataclass
class SlotCreationResult:
    created: list[str] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
