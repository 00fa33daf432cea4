"""Slot model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from doconcall.database import Base


class Slot(Base):
    """A doctor-owned interval of bookable time."""
    __tablename__ = "slots"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_slots_start_before_end"),
    )

    id = Column(String(64), primary_key=True)
    doctor_id = Column(String(128), nullable=False, index=True)
    start = Column("start_time", DateTime, nullable=False)
    end = Column("end_time", DateTime, nullable=False)
    booked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False)
