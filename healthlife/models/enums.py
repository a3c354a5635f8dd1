"""Enumerations shared by the models, services and routes."""

import enum


class UserRole(str, enum.Enum):
    ADMIN = 'ADMIN'
    USER = 'USER'
    DOCTOR = 'DOCTOR'


class AppointmentStatus(str, enum.Enum):
    PENDING = 'PENDING'
    SCHEDULED = 'SCHEDULED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
