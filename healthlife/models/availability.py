"""Doctor availability model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Time, UniqueConstraint

from healthlife.database import Base


class DoctorAvailability(Base):
    """A doctor's recurring weekly window. day_of_week is 0 for Sunday."""
    __tablename__ = "doctor_availability"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", name="uq_doctor_availability_day"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
