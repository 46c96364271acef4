"""Availability and booking operations over the appointment store.

Every function takes the session and the current time from the caller. Errors
are raised as the HTTP error types in ``mindcare.core.errors``; database errors
other than the double-booking guard propagate to the route handlers.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from mindcare.core import config
from mindcare.core.errors import Conflict, Forbidden, InvalidRequest, NotFound
from mindcare.models.appointment import ACTIVE_STATUSES, STATUS_SCHEDULED, Appointment
from mindcare.models.psychologist import STATUS_APPROVED, Psychologist
from mindcare.models.user import ROLE_PATIENT, ROLE_PSYCHOLOGIST, User
from mindcare.scheduling.slots import (
    as_utc,
    generate_available_slots,
    is_grid_slot,
    remove_booked_slots,
)

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)

MAX_PSYCHOLOGIST_ID = 2**31 - 1


def parse_booking_input(psychologist_id: Any, appointment_date_time: Any) -> tuple[int, datetime]:
    if psychologist_id in (None, '') or appointment_date_time in (None, ''):
        raise InvalidRequest('Psychologist ID and appointment date/time are required')

    if isinstance(psychologist_id, bool):
        raise InvalidRequest('Invalid psychologist ID')
    if isinstance(psychologist_id, int):
        parsed_id = psychologist_id
    elif isinstance(psychologist_id, str) and psychologist_id.strip().isdigit():
        parsed_id = int(psychologist_id.strip())
    else:
        raise InvalidRequest('Invalid psychologist ID')
    if not 1 <= parsed_id <= MAX_PSYCHOLOGIST_ID:
        raise InvalidRequest('Invalid psychologist ID')

    if isinstance(appointment_date_time, (int, float)) and not isinstance(appointment_date_time, bool):
        raise InvalidRequest('Invalid appointment date/time')
    try:
        parsed_datetime = as_utc(_datetime_adapter.validate_python(appointment_date_time))
    except (ValidationError, OverflowError) as exc:
        raise InvalidRequest('Invalid appointment date/time') from exc

    return parsed_id, parsed_datetime


def get_approved_psychologist(db: Session, psychologist_id: int) -> Psychologist:
    psychologist = db.query(Psychologist).options(joinedload(Psychologist.user)).filter(
        Psychologist.id == psychologist_id,
        Psychologist.status == STATUS_APPROVED,
    ).first()

    if psychologist is None:
        raise NotFound('Psychologist not found')

    return psychologist


def list_approved_psychologists(db: Session) -> list[Psychologist]:
    return db.query(Psychologist).options(joinedload(Psychologist.user)).filter(
        Psychologist.status == STATUS_APPROVED,
    ).order_by(Psychologist.id.asc()).all()


def get_booked_slot_starts(db: Session, psychologist_id: int, now: datetime) -> list[datetime]:
    rows = db.query(Appointment.appointment_datetime).filter(
        Appointment.psychologist_id == psychologist_id,
        Appointment.status.in_(ACTIVE_STATUSES),
        Appointment.appointment_datetime >= as_utc(now),
    ).all()

    return [as_utc(appointment_datetime) for (appointment_datetime,) in rows]


def get_available_slots(db: Session, psychologist_id: int, now: datetime) -> list[datetime]:
    get_approved_psychologist(db, psychologist_id)
    booked_starts = get_booked_slot_starts(db, psychologist_id, now)
    return remove_booked_slots(generate_available_slots(now), booked_starts)


def find_active_appointment(db: Session, psychologist_id: int, appointment_datetime: datetime) -> Appointment | None:
    return db.query(Appointment).filter(
        Appointment.psychologist_id == psychologist_id,
        Appointment.appointment_datetime == as_utc(appointment_datetime),
        Appointment.status.in_(ACTIVE_STATUSES),
    ).first()


def book_appointment(
    db: Session,
    patient: User,
    psychologist_id: int,
    appointment_datetime: datetime,
    now: datetime,
    require_slot_alignment: bool | None = None,
) -> Appointment:
    """Reserve ``appointment_datetime`` with the psychologist for ``patient``.

    The lookup for an existing booking only produces the friendly error. The
    partial unique index on active appointments decides concurrent attempts:
    the first commit wins and the others surface as ``Conflict``.
    """
    if require_slot_alignment is None:
        require_slot_alignment = config.BOOKING_REQUIRE_SLOT_ALIGNMENT

    if patient.role != ROLE_PATIENT:
        raise Forbidden('Only patients can book appointments')

    psychologist = get_approved_psychologist(db, psychologist_id)
    appointment_datetime = as_utc(appointment_datetime)

    if find_active_appointment(db, psychologist.id, appointment_datetime) is not None:
        raise Conflict()

    if appointment_datetime <= as_utc(now):
        raise InvalidRequest('Appointment must be in the future')

    if require_slot_alignment and not is_grid_slot(appointment_datetime, now):
        raise InvalidRequest('Appointment time must match an available slot')

    appointment = Appointment(
        psychologist_id=psychologist.id,
        patient_id=patient.id,
        appointment_datetime=appointment_datetime,
        status=STATUS_SCHEDULED,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info(
            'Concurrent booking rejected for psychologist %s at %s',
            psychologist.id,
            appointment_datetime.isoformat(),
        )
        raise Conflict() from exc

    db.refresh(appointment)
    logger.info('Appointment %s booked with psychologist %s by patient %s', appointment.id, psychologist.id, patient.id)
    return appointment


def is_active_appointment(appointment: Appointment, now: datetime) -> bool:
    return appointment.status == STATUS_SCHEDULED and as_utc(appointment.appointment_datetime) >= as_utc(now)


def split_active_and_archived(
    appointments: list[Appointment],
    now: datetime,
) -> tuple[list[Appointment], list[Appointment]]:
    active: list[Appointment] = []
    archived: list[Appointment] = []
    for appointment in appointments:
        if appointment.psychologist is None:
            continue
        if is_active_appointment(appointment, now):
            active.append(appointment)
        else:
            archived.append(appointment)
    return active, archived


def list_patient_appointments(db: Session, patient: User, now: datetime) -> tuple[list[Appointment], list[Appointment]]:
    if patient.role != ROLE_PATIENT:
        raise Forbidden('Only patients can view their appointments')

    appointments = db.query(Appointment).options(
        joinedload(Appointment.psychologist).joinedload(Psychologist.user),
    ).filter(
        Appointment.patient_id == patient.id,
    ).order_by(Appointment.appointment_datetime.asc()).all()

    return split_active_and_archived(appointments, now)


def list_psychologist_appointments(db: Session, user: User) -> list[Appointment]:
    if user.role != ROLE_PSYCHOLOGIST:
        raise Forbidden('Only psychologists can view their appointments')

    psychologist = db.query(Psychologist).filter(Psychologist.user_id == user.id).first()
    if psychologist is None:
        raise NotFound('Psychologist profile not found')

    return db.query(Appointment).options(joinedload(Appointment.patient)).filter(
        Appointment.psychologist_id == psychologist.id,
    ).order_by(Appointment.appointment_datetime.asc()).all()
