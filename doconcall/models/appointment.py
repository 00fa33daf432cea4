"""Appointment model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, String, UniqueConstraint
from doconcall.database import Base


class Appointment(Base):
    """A client's reservation of one doctor slot.

    ``slot_id`` names the origin slot without a foreign key so the
    appointment stays intact if the slot row changes later.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("slot_id", name="uq_appointments_slot"),
        UniqueConstraint("client_id", "idempotency_key", name="uq_appointments_client_idempotency"),
        CheckConstraint("slot_start < slot_end", name="ck_appointments_start_before_end"),
    )

    id = Column(String(64), primary_key=True)
    client_id = Column(String(128), nullable=False, index=True)
    doctor_id = Column(String(128), nullable=False, index=True)
    slot_id = Column(String(64), nullable=False)
    slot_start = Column(DateTime, nullable=False)
    slot_end = Column(DateTime, nullable=False)
    status = Column(String(16), nullable=False)
    room_name = Column(String(255), nullable=False, unique=True)
    notes = Column(String, nullable=True)
    idempotency_key = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
