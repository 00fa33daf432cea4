from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from doconcall.database import SessionLocal, ensure_appointment_schema, ensure_slot_schema
from doconcall.scheduling import errors
from doconcall.scheduling.store import SqlAlchemyStore

ERROR_STATUS_CODES = {
    errors.SlotNotFound: status.HTTP_404_NOT_FOUND,
    errors.AppointmentNotFound: status.HTTP_404_NOT_FOUND,
    errors.SlotAlreadyBooked: status.HTTP_409_CONFLICT,
    errors.SlotBooked: status.HTTP_409_CONFLICT,
    errors.IllegalStateTransition: status.HTTP_409_CONFLICT,
    errors.NotConfirmed: status.HTTP_409_CONFLICT,
    errors.StoreConflict: status.HTTP_409_CONFLICT,
    errors.SlotInPast: status.HTTP_400_BAD_REQUEST,
    errors.InvalidTimeRange: status.HTTP_400_BAD_REQUEST,
    errors.InvalidNotes: status.HTTP_400_BAD_REQUEST,
    errors.NotParticipant: status.HTTP_403_FORBIDDEN,
    errors.StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.MalformedRecord: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_exception(exc: errors.ReservationError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    headers = {'Retry-After': '1'} if exc.retryable else None
    return HTTPException(
        status_code=status_code,
        detail={'error': exc.kind, 'message': exc.detail},
        headers=headers,
    )


def ensure_database_ready() -> None:
    try:
        ensure_slot_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


def get_store() -> SqlAlchemyStore:
    return SqlAlchemyStore(SessionLocal)
