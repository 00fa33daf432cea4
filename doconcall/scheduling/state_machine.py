"""Appointment status lifecycle.

    pending ──> confirmed ──> completed
       │            │
       └────────────┴──> cancelled

``completed`` and ``cancelled`` are terminal. Who may request a transition is
decided in :mod:`doconcall.scheduling.policy`, not here.
"""

from enum import Enum

from doconcall.scheduling.errors import IllegalStateTransition


class AppointmentStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def transition(current: AppointmentStatus, requested: str | AppointmentStatus) -> AppointmentStatus:
    """Return the new status, or raise ``IllegalStateTransition``."""
    current_status = AppointmentStatus(current)
    try:
        requested_status = AppointmentStatus(requested)
    except ValueError as exc:
        raise IllegalStateTransition(current_status.value, str(requested)) from exc

    if not can_transition(current_status, requested_status):
        raise IllegalStateTransition(current_status.value, requested_status.value)

    return requested_status
