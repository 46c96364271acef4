import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('SCHEDULE_TIMEZONE', 'UTC')
os.environ.setdefault('APP_ENV', 'test')

from mindcare.database import Base  # noqa: E402
from mindcare.models.appointment import STATUS_SCHEDULED, Appointment  # noqa: E402
from mindcare.models.psychologist import STATUS_APPROVED, Psychologist  # noqa: E402
from mindcare.models.user import ROLE_PATIENT, ROLE_PSYCHOLOGIST, User  # noqa: E402

# Monday morning, one hour before the first slot of the day.
NOW = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str, role: str = ROLE_PATIENT, first_name: str = 'Test', last_name: str = 'User') -> User:
        user = User(email=email, role=role, first_name=first_name, last_name=last_name, hashed_password='')
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_psychologist(db_session, make_user):
    def _make_psychologist(email: str = 'therapist@example.com', status: str = STATUS_APPROVED) -> Psychologist:
        user = make_user(email, role=ROLE_PSYCHOLOGIST, first_name='Olena', last_name='Koval')
        psychologist = Psychologist(
            user_id=user.id,
            specialization='Cognitive behavioural therapy',
            experience=7,
            price=800,
            status=status,
        )
        db_session.add(psychologist)
        db_session.commit()
        db_session.refresh(psychologist)
        return psychologist

    return _make_psychologist


@pytest.fixture
def make_appointment(db_session):
    def _make_appointment(
        psychologist: Psychologist,
        patient: User,
        appointment_datetime: datetime,
        status: str = STATUS_SCHEDULED,
    ) -> Appointment:
        appointment = Appointment(
            psychologist_id=psychologist.id,
            patient_id=patient.id,
            appointment_datetime=appointment_datetime,
            status=status,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def patient(make_user):
    return make_user('patient@example.com', first_name='Ivan', last_name='Petrenko')


@pytest.fixture
def psychologist(make_psychologist):
    return make_psychologist()


@pytest.fixture
def now():
    return NOW
