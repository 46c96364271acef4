"""User model definitions."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from mindcare.database import Base

ROLE_PATIENT = 'patient'
ROLE_PSYCHOLOGIST = 'psychologist'
ROLE_ADMIN = 'admin'


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    photo_url = Column(String)
    hashed_password = Column(String)
    role = Column(String, nullable=False, default=ROLE_PATIENT)  # patient/psychologist/admin

    psychologist = relationship("Psychologist", back_populates="user", uselist=False)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
