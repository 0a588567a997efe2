import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from edunex import issue_token  # noqa: E402
from edunex.auth import jwt_handler  # noqa: E402
from edunex.database import Base  # noqa: E402
from edunex.models.user import User  # noqa: E402


@pytest.fixture
def session_factory(monkeypatch: pytest.MonkeyPatch):
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    db = testing_session_local()
    db.add(User(email='prof@example.edu', role='instructor'))
    db.commit()
    db.close()

    monkeypatch.setattr(issue_token, 'SessionLocal', testing_session_local)
    yield testing_session_local
    Base.metadata.drop_all(bind=engine, tables=[User.__table__])


def test_issue_token_prints_token_for_known_user(session_factory, capsys) -> None:
    issue_token.main([' PROF@example.edu '])

    token = capsys.readouterr().out.strip()
    payload = jwt_handler.decode_access_token(token)
    assert payload['sub'] == 'prof@example.edu'
    assert payload['role'] == 'instructor'


def test_issue_token_exits_for_unknown_user(session_factory, capsys) -> None:
    with pytest.raises(SystemExit) as exit_info:
        issue_token.main(['nobody@example.edu'])

    assert exit_info.value.code == 1
    assert 'No user with email nobody@example.edu' in capsys.readouterr().err


def test_issue_token_requires_one_argument() -> None:
    with pytest.raises(SystemExit) as exit_info:
        issue_token.main([])

    assert exit_info.value.code == 2
