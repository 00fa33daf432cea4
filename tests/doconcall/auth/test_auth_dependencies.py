import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from doconcall.auth import jwt_handler
from doconcall.auth.dependencies import get_current_actor, get_current_user
from doconcall.models.user import User


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add(User(id='doctor-d', email='doc@example.com', name='Dr. D', role='Doctor', approved=True))
    session.commit()
    try:
        yield session
    finally:
        session.close()


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip() -> None:
    token = jwt_handler.create_access_token('doc@example.com', role='doctor')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'doc@example.com'
    assert payload['role'] == 'doctor'


def test_get_current_user_resolves_token_subject(db) -> None:
    token = jwt_handler.create_access_token('doc@example.com')

    user = get_current_user(credentials=_credentials(token), db=db)

    assert user.id == 'doctor-d'


def test_get_current_user_rejects_garbage_token(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials('not-a-jwt'), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_user(db) -> None:
    token = jwt_handler.create_access_token('ghost@example.com')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.detail == 'User not found'


def test_get_current_actor_normalizes_role(db) -> None:
    user = db.query(User).filter(User.email == 'doc@example.com').first()

    actor = get_current_actor(current_user=user)

    assert actor.user_id == 'doctor-d'
    assert actor.role == 'doctor'
    assert actor.approved is True
