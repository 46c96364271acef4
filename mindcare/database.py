from threading import Lock

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker

from mindcare.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    if database_url.startswith("postgresql"):
        # Bounds every statement so a slow database cannot hang a request.
        return {"options": f"-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}"}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        from mindcare.models.appointment import ACTIVE_SLOT_INDEX

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_indexes = {index['name'] for index in inspector.get_indexes('appointments')}
        if ACTIVE_SLOT_INDEX.name not in existing_indexes:
            ACTIVE_SLOT_INDEX.create(bind=engine, checkfirst=True)

        _appointment_schema_checked = True
