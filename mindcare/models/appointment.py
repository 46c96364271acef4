"""Appointment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship

from mindcare.database import Base

STATUS_SCHEDULED = 'scheduled'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'

# Statuses that hold a slot. Cancelled appointments free it for rebooking.
ACTIVE_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED)


class Appointment(Base):
    """Represents one reserved one-hour consultation."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    psychologist_id = Column(Integer, ForeignKey("psychologists.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_datetime = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default=STATUS_SCHEDULED)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    psychologist = relationship("Psychologist", back_populates="appointments")
    patient = relationship("User")


ACTIVE_SLOT_INDEX = Index(
    'uq_appointments_psychologist_active_slot',
    Appointment.psychologist_id,
    Appointment.appointment_datetime,
    unique=True,
    postgresql_where=Appointment.status.in_(ACTIVE_STATUSES),
    sqlite_where=Appointment.status.in_(ACTIVE_STATUSES),
)
