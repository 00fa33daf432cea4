import os
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from doconcall.database import Base  # noqa: E402
from doconcall.models import appointment, slot, user  # noqa: E402,F401
from doconcall.scheduling.store import SqlAlchemyStore  # noqa: E402

# Sunday evening before the week used throughout the suite.
NOW = datetime(2025, 1, 5, 18, 0)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SequentialIds:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.issued = 0

    def __call__(self) -> str:
        self.issued += 1
        return f'{self.prefix}-{self.issued}'


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(session_factory) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_factory)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def slot_ids() -> SequentialIds:
    return SequentialIds('slot')


@pytest.fixture
def appointment_ids() -> SequentialIds:
    return SequentialIds('appt')
