import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthlife.auth.dependencies import get_current_doctor
from healthlife.database import DATABASE_UNAVAILABLE_DETAIL, get_db
from healthlife.models.appointment import Appointment
from healthlife.models.availability import DoctorAvailability
from healthlife.models.enums import AppointmentStatus, UserRole
from healthlife.models.user import User
from healthlife.scheduling.conflicts import find_availability_window
from healthlife.scheduling.errors import InvalidTimeFormat
from healthlife.scheduling.times import day_of_week, minutes_to_time, parse_minutes

logger = logging.getLogger(__name__)

router = APIRouter(tags=['availability'])

DAYS_PER_WEEK = 7
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


class AvailabilityWindowRequest(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if not 0 <= value < DAYS_PER_WEEK:
            raise ValueError('Day of week must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def parse_clock_time(cls, value):
        if isinstance(value, time):
            return value
        try:
            return minutes_to_time(parse_minutes(value, 'time'))
        except InvalidTimeFormat as exc:
            raise ValueError(exc.message) from exc

    @model_validator(mode='after')
    def validate_range(self) -> 'AvailabilityWindowRequest':
        if self.end_time <= self.start_time:
            raise ValueError('End time must be after start time')
        return self


class UpdateAvailabilityRequest(BaseModel):
    windows: list[AvailabilityWindowRequest]

    @field_validator('windows')
    @classmethod
    def validate_unique_days(cls, value: list[AvailabilityWindowRequest]) -> list[AvailabilityWindowRequest]:
        days = [window.day_of_week for window in value]
        if len(days) != len(set(days)):
            raise ValueError('Each day of the week may appear only once.')
        return value


class AvailabilityWindowResponse(BaseModel):
    id: int
    day_of_week: int
    day_name: str
    start_time: time
    end_time: time
    is_available: bool


class DoctorDirectoryEntry(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone_no: str | None = None
    specialty: str | None = None
    availability: list[AvailabilityWindowResponse]


class BookedInterval(BaseModel):
    start_time: datetime
    end_time: datetime


class DoctorScheduleResponse(BaseModel):
    doctor_id: int
    date: date
    day_of_week: int
    is_available: bool
    start_time: time | None = None
    end_time: time | None = None
    booked: list[BookedInterval]


def to_window_response(window: DoctorAvailability) -> AvailabilityWindowResponse:
    return AvailabilityWindowResponse(
        id=window.id,
        day_of_week=window.day_of_week,
        day_name=DAY_NAMES[window.day_of_week],
        start_time=window.start_time,
        end_time=window.end_time,
        is_available=window.is_available,
    )


def list_windows(doctor_id: int, db: Session) -> list[DoctorAvailability]:
    return db.query(DoctorAvailability).filter(
        DoctorAvailability.doctor_id == doctor_id,
    ).order_by(DoctorAvailability.day_of_week.asc(), DoctorAvailability.id.asc()).all()


@router.get('/me', response_model=list[AvailabilityWindowResponse])
def get_my_availability(
    current_doctor: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        return [to_window_response(window) for window in list_windows(current_doctor.id, db)]
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.put('/me', response_model=list[AvailabilityWindowResponse])
def update_my_availability(
    data: UpdateAvailabilityRequest,
    current_doctor: User = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    try:
        existing_by_day = {window.day_of_week: window for window in list_windows(current_doctor.id, db)}

        for entry in data.windows:
            window = existing_by_day.get(entry.day_of_week)
            if window is None:
                window = DoctorAvailability(doctor_id=current_doctor.id, day_of_week=entry.day_of_week)
                db.add(window)
                existing_by_day[entry.day_of_week] = window

            window.start_time = entry.start_time
            window.end_time = entry.end_time
            window.is_available = entry.is_available

        db.commit()
        logger.info('Doctor %s updated availability for %d day(s)', current_doctor.id, len(data.windows))

        return [to_window_response(window) for window in list_windows(current_doctor.id, db)]
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update availability for doctor %s', current_doctor.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/doctors', response_model=list[DoctorDirectoryEntry])
def list_doctors(db: Session = Depends(get_db)):
    try:
        doctors = db.query(User).filter(
            User.role == UserRole.DOCTOR.value,
        ).order_by(User.last_name.asc(), User.first_name.asc()).all()

        return [
            DoctorDirectoryEntry(
                id=doctor.id,
                first_name=doctor.first_name,
                last_name=doctor.last_name,
                email=doctor.email,
                phone_no=doctor.phone_no,
                specialty=doctor.specialty,
                availability=[to_window_response(window) for window in list_windows(doctor.id, db)],
            )
            for doctor in doctors
        ]
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/doctors/{doctor_id}/schedule', response_model=DoctorScheduleResponse)
def get_doctor_schedule(
    doctor_id: int,
    on_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    try:
        doctor = db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR.value,
        ).first()
        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Doctor not found.',
            )

        window = find_availability_window(list_windows(doctor_id, db), on_date)
        booked = db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        ).order_by(Appointment.start_time.asc()).all()

        return DoctorScheduleResponse(
            doctor_id=doctor_id,
            date=on_date,
            day_of_week=day_of_week(on_date),
            is_available=window is not None,
            start_time=window.start_time if window else None,
            end_time=window.end_time if window else None,
            booked=[
                BookedInterval(start_time=appointment.start_time, end_time=appointment.end_time)
                for appointment in booked
            ],
        )
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
