import logging
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthlife.core import config
from healthlife.models.appointment import Appointment, MealPlan
from healthlife.models.availability import DoctorAvailability
from healthlife.models.enums import AppointmentStatus, UserRole
from healthlife.models.user import User
from healthlife.scheduling.conflicts import (
    BookingDecision,
    BookingRequest,
    check_booking,
    find_overlapping_appointment,
)
from healthlife.scheduling.errors import SchedulingError, SlotAlreadyBooked
from healthlife.scheduling.times import to_minutes

logger = logging.getLogger(__name__)


class AppointmentInPast(SchedulingError):
    code = 'date_in_past'
    field = 'date'

    def __init__(self, message: str = 'Appointments must be scheduled in the future.') -> None:
        super().__init__(message)


class AppointmentTooFarAhead(SchedulingError):
    code = 'date_out_of_range'
    field = 'date'

    def __init__(self, range_days: int) -> None:
        super().__init__(f'Appointments can be booked at most {range_days} days ahead.')


class BookingRejected(Exception):
    def __init__(self, decision: BookingDecision) -> None:
        super().__init__(decision.reason)
        self.decision = decision

    @property
    def error(self) -> SchedulingError:
        return self.decision.error


class DoctorNotFound(Exception):
    pass


class AppointmentNotFound(Exception):
    pass


class AppointmentStateError(Exception):
    pass


class BookingService:
    """Reads, validates and writes appointments for one request's session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _lock_doctor(self, doctor_id: int) -> User | None:
        # Row lock on the doctor serializes concurrent bookings for them until
        # this transaction commits or rolls back.
        return (
            self.db.query(User)
            .filter(User.id == doctor_id, User.role == UserRole.DOCTOR.value)
            .with_for_update()
            .first()
        )

    def _active_appointments(self, doctor_id: int, on_date: date) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == on_date,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
            .order_by(Appointment.start_time.asc())
            .all()
        )

    def availability_for(self, doctor_id: int) -> list[DoctorAvailability]:
        return (
            self.db.query(DoctorAvailability)
            .filter(DoctorAvailability.doctor_id == doctor_id)
            .order_by(DoctorAvailability.day_of_week.asc(), DoctorAvailability.id.asc())
            .all()
        )

    def _ensure_slot_still_free(self, appointment: Appointment) -> None:
        # A cancelled slot may have been re-booked since; check under the same lock as book().
        self._lock_doctor(appointment.doctor_id)
        others = [
            other
            for other in self._active_appointments(appointment.doctor_id, appointment.date)
            if other.id != appointment.id
        ]
        clash = find_overlapping_appointment(
            others,
            appointment.doctor_id,
            appointment.date,
            to_minutes(appointment.start_time),
            to_minutes(appointment.end_time),
        )
        if clash is not None:
            raise BookingRejected(BookingDecision.reject(SlotAlreadyBooked()))

    def book(self, patient: User, request: BookingRequest, today: date | None = None) -> Appointment:
        today = today or date.today()

        try:
            doctor = self._lock_doctor(request.doctor_id)
            if doctor is None:
                raise DoctorNotFound(f'Doctor {request.doctor_id} not found.')

            if request.date < today:
                raise BookingRejected(BookingDecision.reject(AppointmentInPast()))
            if request.date > today + timedelta(days=config.BOOKING_RANGE_DAYS):
                raise BookingRejected(BookingDecision.reject(AppointmentTooFarAhead(config.BOOKING_RANGE_DAYS)))

            decision = check_booking(
                request,
                self.availability_for(request.doctor_id),
                self._active_appointments(request.doctor_id, request.date),
            )
            if not decision.accepted:
                logger.info(
                    'Rejected booking for doctor %s on %s: %s',
                    request.doctor_id,
                    request.date,
                    decision.error.code,
                )
                raise BookingRejected(decision)

            draft = decision.appointment
            appointment = Appointment(
                doctor_id=draft.doctor_id,
                patient_id=patient.id,
                date=draft.date,
                start_time=draft.start_time,
                end_time=draft.end_time,
                status=draft.status.value,
                notes=draft.notes,
            )
            self.db.add(appointment)
            self.db.commit()
        except (DoctorNotFound, BookingRejected):
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception('Failed to book appointment for doctor %s', request.doctor_id)
            raise

        self.db.refresh(appointment)
        logger.info(
            'Booked appointment %s for doctor %s on %s %s-%s',
            appointment.id,
            appointment.doctor_id,
            appointment.date,
            request.start_time,
            request.end_time,
        )
        return appointment

    def list_for_patient(self, patient_id: int) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.date.desc(), Appointment.start_time.desc())
            .all()
        )

    def list_for_doctor(self, doctor_id: int) -> list[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.start_time.asc())
            .all()
        )

    def get_for_patient(self, appointment_id: int, patient_id: int) -> Appointment:
        appointment = (
            self.db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.patient_id == patient_id)
            .first()
        )
        if appointment is None:
            raise AppointmentNotFound('Appointment not found.')
        return appointment

    def get_for_doctor(self, appointment_id: int, doctor_id: int) -> Appointment:
        appointment = (
            self.db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.doctor_id == doctor_id)
            .first()
        )
        if appointment is None:
            raise AppointmentNotFound('Appointment not found.')
        return appointment

    def update_by_doctor(
        self,
        appointment_id: int,
        doctor_id: int,
        status: AppointmentStatus | None = None,
        notes: str | None = None,
        meal_plan: str | None = None,
    ) -> Appointment:
        appointment = self.get_for_doctor(appointment_id, doctor_id)

        try:
            if status is not None:
                if (
                    appointment.status == AppointmentStatus.CANCELLED.value
                    and status != AppointmentStatus.CANCELLED
                ):
                    self._ensure_slot_still_free(appointment)
                appointment.status = status.value
            if notes is not None:
                appointment.notes = notes
            if meal_plan is not None:
                if appointment.meal_plan is None:
                    appointment.meal_plan = MealPlan(plan=meal_plan)
                else:
                    appointment.meal_plan.plan = meal_plan

            self.db.commit()
        except BookingRejected:
            self.db.rollback()
            logger.info('Refused to reactivate appointment %s: slot taken', appointment_id)
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception('Failed to update appointment %s', appointment_id)
            raise

        self.db.refresh(appointment)
        logger.info('Doctor %s updated appointment %s (status=%s)', doctor_id, appointment_id, appointment.status)
        return appointment

    def cancel_for_patient(self, appointment_id: int, patient_id: int) -> Appointment:
        appointment = self.get_for_patient(appointment_id, patient_id)

        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise AppointmentStateError('Appointment is already cancelled.')
        if appointment.status == AppointmentStatus.COMPLETED.value:
            raise AppointmentStateError('Cannot cancel a completed appointment.')

        appointment.status = AppointmentStatus.CANCELLED.value
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception('Failed to cancel appointment %s', appointment_id)
            raise

        self.db.refresh(appointment)
        logger.info('Patient %s cancelled appointment %s', patient_id, appointment_id)
        return appointment
