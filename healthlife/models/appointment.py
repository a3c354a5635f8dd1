"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from healthlife.database import Base
from healthlife.models.enums import AppointmentStatus


class Appointment(Base):
    """Represents a booked appointment between a patient and a doctor."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(String, default="")
    created_at = Column(DateTime, default=datetime.now)

    meal_plan = relationship(
        "MealPlan",
        back_populates="appointment",
        uselist=False,
        cascade="all, delete-orphan",
    )


class MealPlan(Base):
    """Meal plan a doctor records for an appointment."""
    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    plan = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    appointment = relationship("Appointment", back_populates="meal_plan")
