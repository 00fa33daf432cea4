"""Typed failures of the reservation core.

Every failure is a per-request outcome. Only ``StoreConflict`` and
``StoreUnavailable`` are safe to retry; nothing in this package retries on
its own.
"""


class ReservationError(Exception):
    """Base class for reservation core failures."""

    kind = 'ReservationError'
    default_detail = 'Reservation failed.'
    retryable = False

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class SlotNotFound(ReservationError):
    kind = 'SlotNotFound'
    default_detail = 'Slot not found.'


class SlotAlreadyBooked(ReservationError):
    kind = 'SlotAlreadyBooked'
    default_detail = 'Slot is already booked.'


class SlotInPast(ReservationError):
    kind = 'SlotInPast'
    default_detail = 'Slot must start in the future.'


class SlotBooked(ReservationError):
    kind = 'SlotBooked'
    default_detail = 'Booked slots cannot be deleted.'


class InvalidTimeRange(ReservationError):
    kind = 'InvalidTimeRange'
    default_detail = 'Start time must be before end time.'


class InvalidNotes(ReservationError):
    kind = 'InvalidNotes'
    default_detail = 'Notes are too long.'


class AppointmentNotFound(ReservationError):
    kind = 'AppointmentNotFound'
    default_detail = 'Appointment not found.'


class IllegalStateTransition(ReservationError):
    kind = 'IllegalStateTransition'

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f'Cannot change appointment status from {current} to {requested}.')


class NotParticipant(ReservationError):
    kind = 'NotParticipant'
    default_detail = 'You do not have access to this appointment.'


class NotConfirmed(ReservationError):
    kind = 'NotConfirmed'
    default_detail = 'This appointment is not confirmed.'


class MalformedRecord(ReservationError):
    kind = 'MalformedRecord'
    default_detail = 'Stored record failed validation.'


class StoreConflict(ReservationError):
    kind = 'StoreConflict'
    default_detail = 'Concurrent update detected. Please retry.'
    retryable = True


class StoreUnavailable(ReservationError):
    kind = 'StoreUnavailable'
    default_detail = 'Database unavailable. Please retry shortly.'
    retryable = True
