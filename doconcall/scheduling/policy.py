"""Who may act on slots and appointments."""

from dataclasses import dataclass

from doconcall.scheduling.errors import NotParticipant
from doconcall.scheduling.types import Appointment

CLIENT = 'client'
DOCTOR = 'doctor'
ADMIN = 'admin'


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str
    approved: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def authorize_slot_management(actor: Actor, doctor_id: str) -> None:
    if actor.is_admin:
        return
    if actor.role != DOCTOR or actor.user_id != doctor_id:
        raise NotParticipant('Only the doctor can manage their availability.')
    if not actor.approved:
        raise NotParticipant('Doctor account is awaiting approval.')


def authorize_booking(actor: Actor) -> None:
    if actor.role != CLIENT:
        raise NotParticipant('Only clients can book appointments.')


def authorize_transition(actor: Actor, appointment: Appointment) -> None:
    if actor.is_admin:
        return
    if actor.role != DOCTOR or actor.user_id != appointment.doctor_id:
        raise NotParticipant("Only the appointment's doctor can change its status.")
