"""User model definitions."""

from sqlalchemy import Column, Float, Integer, String

from healthlife.database import Base
from healthlife.models.enums import UserRole


class User(Base):
    """Represents a patient, doctor or admin account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    phone_no = Column(String)
    role = Column(String, nullable=False, default=UserRole.USER.value)  # ADMIN/USER/DOCTOR
    specialty = Column(String)
    height_cm = Column(Float)
    weight_kg = Column(Float)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
