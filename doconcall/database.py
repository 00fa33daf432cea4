from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from doconcall.core import config


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, echo=config.SQL_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_slot_schema_checked = False
_appointment_schema_checked = False


def ensure_slot_schema() -> None:
    global _slot_schema_checked

    if _slot_schema_checked:
        return

    with _schema_lock:
        if _slot_schema_checked:
            return

        inspector = inspect(engine)

        if 'slots' not in inspector.get_table_names():
            _slot_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('slots')}
        migration_steps = [
            ('created_at', 'ALTER TABLE slots ADD COLUMN created_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_slots_doctor_start ON slots(doctor_id, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_slots_doctor_booked ON slots(doctor_id, booked)')
            )

        _slot_schema_checked = True


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
            ('idempotency_key', 'ALTER TABLE appointments ADD COLUMN idempotency_key VARCHAR(128)'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_client_start ON appointments(client_id, slot_start)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_start ON appointments(doctor_id, slot_start)')
            )

        _appointment_schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
