from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserSummary(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str


class UserProfileSummary(UserSummary):
    photo_url: str | None = None


class PatientSummary(UserProfileSummary):
    id: int


class PsychologistSummary(CamelModel):
    id: int
    specialization: str | None = None
    user: UserSummary


class PsychologistProfileSummary(CamelModel):
    id: int
    specialization: str | None = None
    price: float | None = None
    user: UserProfileSummary


class PsychologistResponse(CamelModel):
    id: int
    specialization: str | None = None
    experience: int | None = None
    bio: str | None = None
    price: float | None = None
    user: UserProfileSummary


class CreateAppointmentRequest(CamelModel):
    # Parsed by the booking service so malformed values get the booking error messages.
    psychologist_id: Any = None
    appointment_date_time: Any = None


class SlotsResponse(CamelModel):
    slots: list[str]
    slots_by_date: dict[str, list[str]]


class CreatedAppointmentResponse(CamelModel):
    id: int
    appointment_date_time: str
    status: str
    psychologist: PsychologistSummary
    patient: UserSummary


class PatientAppointmentResponse(CamelModel):
    id: int
    appointment_date_time: str
    status: str
    psychologist: PsychologistProfileSummary


class PatientAppointmentsResponse(CamelModel):
    active: list[PatientAppointmentResponse]
    archived: list[PatientAppointmentResponse]


class PsychologistAppointmentResponse(CamelModel):
    id: int
    appointment_date_time: str
    status: str
    patient: PatientSummary


class PsychologistAppointmentsResponse(CamelModel):
    appointments: list[PsychologistAppointmentResponse]
    appointments_by_date: dict[str, list[PsychologistAppointmentResponse]]


class CurrentUserResponse(CamelModel):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str


def price_to_float(price: Decimal | None) -> float | None:
    if price is None:
        return None
    return float(price)
