import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from edunex.main import app, root  # noqa: E402


def test_root_reports_status() -> None:
    assert root() == {'status': 'EduNex Consultations API Running'}


def test_consultation_routes_are_mounted() -> None:
    paths = set(app.openapi()['paths'])

    assert {
        '/consultations/available-slots',
        '/consultations/sessions',
        '/consultations/sessions/{session_id}',
        '/consultations/sessions/my',
        '/consultations/sessions/today',
        '/consultations/availability',
        '/consultations/availability/my',
        '/consultations/availability/{availability_id}',
    } <= paths
