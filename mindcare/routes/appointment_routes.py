from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindcare.auth.dependencies import get_current_user
from mindcare.core.errors import database_error
from mindcare.database import get_db
from mindcare.models.appointment import Appointment
from mindcare.models.psychologist import Psychologist
from mindcare.models.user import User
from mindcare.scheduling import service
from mindcare.scheduling.slots import date_key, group_by_date, to_iso
from mindcare.schemas import (
    CreateAppointmentRequest,
    CreatedAppointmentResponse,
    PatientAppointmentResponse,
    PatientAppointmentsResponse,
    PatientSummary,
    PsychologistAppointmentResponse,
    PsychologistAppointmentsResponse,
    PsychologistProfileSummary,
    PsychologistSummary,
    SlotsResponse,
    UserProfileSummary,
    UserSummary,
    price_to_float,
)
from mindcare.services.notifications import send_appointment_notification

router = APIRouter(tags=['appointments'])


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def build_created_response(appointment: Appointment, psychologist: Psychologist, patient: User) -> CreatedAppointmentResponse:
    return CreatedAppointmentResponse(
        id=appointment.id,
        appointment_date_time=to_iso(appointment.appointment_datetime),
        status=appointment.status,
        psychologist=PsychologistSummary(
            id=psychologist.id,
            specialization=psychologist.specialization,
            user=UserSummary.model_validate(psychologist.user),
        ),
        patient=UserSummary.model_validate(patient),
    )


def build_patient_appointment(appointment: Appointment) -> PatientAppointmentResponse:
    psychologist = appointment.psychologist
    return PatientAppointmentResponse(
        id=appointment.id,
        appointment_date_time=to_iso(appointment.appointment_datetime),
        status=appointment.status,
        psychologist=PsychologistProfileSummary(
            id=psychologist.id,
            specialization=psychologist.specialization,
            price=price_to_float(psychologist.price),
            user=UserProfileSummary.model_validate(psychologist.user),
        ),
    )


def build_psychologist_appointment(appointment: Appointment) -> PsychologistAppointmentResponse:
    return PsychologistAppointmentResponse(
        id=appointment.id,
        appointment_date_time=to_iso(appointment.appointment_datetime),
        status=appointment.status,
        patient=PatientSummary.model_validate(appointment.patient),
    )


@router.get('/slots/{psychologist_id}', response_model=SlotsResponse)
def list_available_slots(
    psychologist_id: int = Path(gt=0, le=service.MAX_PSYCHOLOGIST_ID),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    try:
        available_slots = service.get_available_slots(db, psychologist_id, now)
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    return SlotsResponse(
        slots=[to_iso(slot) for slot in available_slots],
        slots_by_date={
            day: [to_iso(slot) for slot in day_slots]
            for day, day_slots in group_by_date(available_slots).items()
        },
    )


@router.post('', response_model=CreatedAppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    psychologist_id, appointment_datetime = service.parse_booking_input(
        data.psychologist_id,
        data.appointment_date_time,
    )

    try:
        appointment = service.book_appointment(
            db,
            patient=current_user,
            psychologist_id=psychologist_id,
            appointment_datetime=appointment_datetime,
            now=now,
        )
        psychologist = appointment.psychologist
        response = build_created_response(appointment, psychologist, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    background_tasks.add_task(
        send_appointment_notification,
        psychologist_email=psychologist.user.email,
        psychologist_name=psychologist.user.full_name,
        patient_name=current_user.full_name,
        appointment_datetime=appointment_datetime,
    )

    return response


@router.get('/my', response_model=PatientAppointmentsResponse)
def list_my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    try:
        active, archived = service.list_patient_appointments(db, current_user, now)
        return PatientAppointmentsResponse(
            active=[build_patient_appointment(appointment) for appointment in active],
            archived=[build_patient_appointment(appointment) for appointment in archived],
        )
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc


@router.get('/psychologist', response_model=PsychologistAppointmentsResponse)
def list_psychologist_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        appointments = service.list_psychologist_appointments(db, current_user)

        serialized = [build_psychologist_appointment(appointment) for appointment in appointments]
        appointments_by_date: dict[str, list[PsychologistAppointmentResponse]] = {}
        for appointment, item in zip(appointments, serialized):
            appointments_by_date.setdefault(date_key(appointment.appointment_datetime), []).append(item)

        return PsychologistAppointmentsResponse(
            appointments=serialized,
            appointments_by_date=appointments_by_date,
        )
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc
