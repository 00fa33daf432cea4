import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./doconcall.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:5173"])

# Shared with the video collaborator: rooms are named {prefix}-{appointment id}-{ms}.
ROOM_NAME_PREFIX = os.getenv("ROOM_NAME_PREFIX", "doconcall")

# Half-width of the join window around an appointment's start.
JOIN_WINDOW_MINUTES = int(os.getenv("JOIN_WINDOW_MINUTES", "5"))

MIN_SLOT_DURATION_MINUTES = int(os.getenv("MIN_SLOT_DURATION_MINUTES", "15"))
MAX_SLOT_DURATION_MINUTES = int(os.getenv("MAX_SLOT_DURATION_MINUTES", "240"))
MAX_APPOINTMENT_NOTES_LENGTH = int(os.getenv("MAX_APPOINTMENT_NOTES_LENGTH", "1000"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if JOIN_WINDOW_MINUTES < 0:
        raise RuntimeError("JOIN_WINDOW_MINUTES must not be negative.")
    if not 0 < MIN_SLOT_DURATION_MINUTES <= MAX_SLOT_DURATION_MINUTES:
        raise RuntimeError("Slot duration bounds are inconsistent.")
