import logging
from datetime import date, datetime
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthlife.auth.dependencies import get_current_doctor, get_current_patient
from healthlife.core import config
from healthlife.database import DATABASE_UNAVAILABLE_DETAIL, get_db
from healthlife.models.appointment import Appointment
from healthlife.models.enums import AppointmentStatus
from healthlife.models.user import User
from healthlife.scheduling.conflicts import BookingRequest
from healthlife.scheduling.errors import SlotAlreadyBooked
from healthlife.services.booking_service import (
    AppointmentNotFound,
    AppointmentStateError,
    BookingRejected,
    BookingService,
    DoctorNotFound,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=['appointments'])


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    date: date
    start_time: str
    end_time: str
    notes: str | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_time(cls, value: str) -> str:
        return value.strip()

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    def to_booking_request(self) -> BookingRequest:
        return BookingRequest(
            doctor_id=self.doctor_id,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            notes=self.notes or '',
        )


class UpdateAppointmentRequest(BaseModel):
    status: AppointmentStatus | None = None
    notes: str | None = None
    meal_plan: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @field_validator('meal_plan')
    @classmethod
    def validate_meal_plan(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Meal plan is required.')
        return normalized

    @model_validator(mode='after')
    def validate_has_changes(self) -> 'UpdateAppointmentRequest':
        if self.status is None and self.notes is None and self.meal_plan is None:
            raise ValueError('Provide a status, notes or a meal plan to update.')
        return self


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    date: date
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: str = ''
    meal_plan: str | None = None


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        date=appointment.date,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        notes=appointment.notes or '',
        meal_plan=appointment.meal_plan.plan if appointment.meal_plan else None,
    )


def raise_for_rejection(rejection: BookingRejected) -> NoReturn:
    error = rejection.error
    status_code = status.HTTP_409_CONFLICT if isinstance(error, SlotAlreadyBooked) else status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=status_code, detail=error.to_detail()) from rejection


def raise_database_unavailable(exc: SQLAlchemyError) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    ) from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_patient: User = Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    service = BookingService(db)
    try:
        appointment = service.book(current_patient, data.to_booking_request())
    except BookingRejected as rejection:
        raise_for_rejection(rejection)
    except DoctorNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Doctor not found.') from exc
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return to_appointment_response(appointment)


@router.get('', response_model=list[AppointmentResponse])
def list_my_appointments(
    current_patient: User = Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    try:
        appointments = BookingService(db).list_for_patient(current_patient.id)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/doctor', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    current_doctor: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        appointments = BookingService(db).list_for_doctor(current_doctor.id)
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/doctor/{appointment_id}', response_model=AppointmentResponse)
def get_doctor_appointment(
    appointment_id: int,
    current_doctor: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        appointment = BookingService(db).get_for_doctor(appointment_id, current_doctor.id)
    except AppointmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.') from exc
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return to_appointment_response(appointment)


@router.patch('/doctor/{appointment_id}', response_model=AppointmentResponse)
def update_doctor_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    current_doctor: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        appointment = BookingService(db).update_by_doctor(
            appointment_id,
            current_doctor.id,
            status=data.status,
            notes=data.notes,
            meal_plan=data.meal_plan,
        )
    except BookingRejected as rejection:
        raise_for_rejection(rejection)
    except AppointmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.') from exc
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return to_appointment_response(appointment)


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_my_appointment(
    appointment_id: int,
    current_patient: User = Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    try:
        appointment = BookingService(db).get_for_patient(appointment_id, current_patient.id)
    except AppointmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.') from exc
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return to_appointment_response(appointment)


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_my_appointment(
    appointment_id: int,
    current_patient: User = Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    try:
        appointment = BookingService(db).cancel_for_patient(appointment_id, current_patient.id)
    except AppointmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Appointment not found.') from exc
    except AppointmentStateError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise_database_unavailable(exc)

    return to_appointment_response(appointment)
