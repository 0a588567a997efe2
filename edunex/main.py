import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from edunex.core import config
from edunex.core.logging_config import setup_logging
from edunex.database import Base, engine, ensure_availability_schema, ensure_session_schema
from edunex.models import availability, consultation_session, course, user  # noqa: F401
from edunex.routes import consultation_routes

setup_logging()
config.validate_runtime_config()

app = FastAPI(title='EduNex Consultations')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_availability_schema()
        ensure_session_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'EduNex Consultations API Running'}


app.include_router(consultation_routes.router, prefix='/consultations')
