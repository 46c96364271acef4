import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from mindcare.core import config
from mindcare.core.errors import unhandled_exception_handler, validation_exception_handler
from mindcare.database import Base, engine, ensure_appointment_schema
from mindcare.models import appointment, psychologist, user  # noqa: F401
from mindcare.routes import appointment_routes, auth_routes, psychologist_routes

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='MindCare API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.get('/')
def root():
    return {'status': 'MindCare API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(psychologist_routes.router, prefix='/psychologists')
app.include_router(appointment_routes.router, prefix='/appointments')
