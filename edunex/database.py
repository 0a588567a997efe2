from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from edunex.core import config


engine = create_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_availability_schema_checked = False
_session_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_availability_schema() -> None:
    global _availability_schema_checked

    if _availability_schema_checked:
        return

    with _schema_lock:
        if _availability_schema_checked:
            return

        inspector = inspect(engine)

        if 'instructor_availability' not in inspector.get_table_names():
            _availability_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('instructor_availability')}
        migration_steps = [
            ('day_note', 'ALTER TABLE instructor_availability ADD COLUMN day_note VARCHAR'),
            ('is_blocked', 'ALTER TABLE instructor_availability ADD COLUMN is_blocked BOOLEAN DEFAULT FALSE'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_instructor_availability_day '
                    'ON instructor_availability(instructor_id, date)'
                )
            )

        _availability_schema_checked = True


def ensure_session_schema() -> None:
    global _session_schema_checked

    if _session_schema_checked:
        return

    with _schema_lock:
        if _session_schema_checked:
            return

        inspector = inspect(engine)

        if 'consultation_sessions' not in inspector.get_table_names():
            _session_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('consultation_sessions')}
        migration_steps = [
            ('student_note', 'ALTER TABLE consultation_sessions ADD COLUMN student_note VARCHAR'),
            ('instructor_note', 'ALTER TABLE consultation_sessions ADD COLUMN instructor_note VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            # At most one booked session may start at a given instructor/date/time.
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_consultation_sessions_booked_start '
                    "ON consultation_sessions(instructor_id, date, start_time) WHERE status = 'booked'"
                )
            )
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_consultation_sessions_student_date '
                    'ON consultation_sessions(student_id, date)'
                )
            )

        _session_schema_checked = True
