"""Psychologist profile model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from mindcare.database import Base

STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
STATUS_BLOCKED = 'blocked'


class Psychologist(Base):
    """Represents a psychologist profile attached to a user."""
    __tablename__ = "psychologists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    specialization = Column(String)
    experience = Column(Integer)
    bio = Column(Text)
    price = Column(Numeric(10, 2))
    status = Column(String, nullable=False, default=STATUS_PENDING, index=True)

    user = relationship("User", back_populates="psychologist")
    appointments = relationship("Appointment", back_populates="psychologist")
