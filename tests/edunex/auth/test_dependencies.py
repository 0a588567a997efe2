import os

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from edunex.auth import jwt_handler  # noqa: E402
from edunex.auth.dependencies import get_current_user, require_role  # noqa: E402
from edunex.database import Base  # noqa: E402
from edunex.models.user import User  # noqa: E402


@pytest.fixture
def user_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    db = testing_session_local()
    db.add(User(email='student@example.edu', role='student'))
    db.commit()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip_carries_role() -> None:
    token = jwt_handler.create_access_token('student@example.edu', role='student')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'student@example.edu'
    assert payload['role'] == 'student'


def test_get_current_user_resolves_token_subject(user_db) -> None:
    token = jwt_handler.create_access_token('Student@Example.edu')

    user = get_current_user(credentials=_credentials(token), db=user_db)

    assert user.email == 'student@example.edu'


def test_get_current_user_rejects_garbage_token(user_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials('not-a-token'), db=user_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_user(user_db) -> None:
    token = jwt_handler.create_access_token('ghost@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=user_db)

    assert exception_info.value.detail == 'User not found'


def test_require_role_blocks_other_roles(user_db) -> None:
    student = user_db.query(User).one()

    assert require_role('student', 'admin')(current_user=student) is student

    with pytest.raises(HTTPException) as exception_info:
        require_role('instructor')(current_user=student)

    assert exception_info.value.status_code == 403
