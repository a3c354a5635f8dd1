"""Appointment conflict checks.

``check_booking`` decides whether a candidate slot can be booked with a
doctor. It looks up the doctor's weekly window for the requested day,
verifies the slot fits inside that window, then scans the doctor's existing
appointments on the same date for an overlap. The first failing step decides
the verdict and later steps are skipped.

The function is pure: it only reads the windows and appointments handed to
it, so the caller owns fetching them (and locking, see
``healthlife.services.booking_service``).
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Protocol

from healthlife.models.enums import AppointmentStatus
from healthlife.scheduling.errors import (
    InvalidTimeFormat,
    NotAvailableOnDay,
    OutsideAvailableHours,
    SchedulingError,
    SlotAlreadyBooked,
)
from healthlife.scheduling.times import combine, day_of_week, format_minutes, parse_minutes, to_minutes


class AvailabilityWindowLike(Protocol):
    day_of_week: int
    start_time: object
    end_time: object
    is_available: bool


class AppointmentLike(Protocol):
    doctor_id: int
    date: object
    start_time: datetime
    end_time: datetime
    status: str


@dataclass(frozen=True)
class BookingRequest:
    doctor_id: int
    date: date
    start_time: str
    end_time: str
    notes: str = ''


@dataclass(frozen=True)
class AppointmentDraft:
    doctor_id: int
    date: date
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: str = ''


@dataclass(frozen=True)
class BookingDecision:
    accepted: bool
    appointment: AppointmentDraft | None = None
    reason: str | None = None
    error: SchedulingError | None = None

    @classmethod
    def accept(cls, appointment: AppointmentDraft) -> 'BookingDecision':
        return cls(accepted=True, appointment=appointment)

    @classmethod
    def reject(cls, error: SchedulingError) -> 'BookingDecision':
        return cls(accepted=False, reason=error.message, error=error)


def find_availability_window(
    windows: Iterable[AvailabilityWindowLike],
    target_date: date,
) -> AvailabilityWindowLike | None:
    target_day = day_of_week(target_date)
    return next(
        (window for window in windows if window.day_of_week == target_day and window.is_available),
        None,
    )


def ensure_within_window(window: AvailabilityWindowLike, start_minutes: int, end_minutes: int) -> None:
    window_start = to_minutes(window.start_time)
    window_end = to_minutes(window.end_time)

    if start_minutes >= window_start and end_minutes <= window_end:
        return

    raise OutsideAvailableHours(
        f'Selected time must be between {format_minutes(window_start)} and {format_minutes(window_end)}'
    )


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Half-open intervals: back-to-back slots do not overlap.
    return start_a < end_b and end_a > start_b


def _calendar_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def relevant_appointments(
    appointments: Iterable[AppointmentLike],
    doctor_id: int,
    target_date: date,
) -> list[AppointmentLike]:
    return [
        appointment
        for appointment in appointments
        if appointment.doctor_id == doctor_id
        and _calendar_date(appointment.date) == target_date
        and appointment.status != AppointmentStatus.CANCELLED
    ]


def find_overlapping_appointment(
    appointments: Iterable[AppointmentLike],
    doctor_id: int,
    target_date: date,
    start_minutes: int,
    end_minutes: int,
) -> AppointmentLike | None:
    for appointment in relevant_appointments(appointments, doctor_id, target_date):
        existing_start = to_minutes(appointment.start_time)
        existing_end = to_minutes(appointment.end_time)
        if intervals_overlap(start_minutes, end_minutes, existing_start, existing_end):
            return appointment
    return None


def parse_candidate_range(request: BookingRequest) -> tuple[int, int]:
    start_minutes = parse_minutes(request.start_time, 'start_time')
    end_minutes = parse_minutes(request.end_time, 'end_time')

    if end_minutes <= start_minutes:
        raise InvalidTimeFormat('End time must be after start time', field='end_time')

    return start_minutes, end_minutes


def validate_booking(
    request: BookingRequest,
    windows: Iterable[AvailabilityWindowLike],
    appointments: Iterable[AppointmentLike],
) -> AppointmentDraft:
    """Run every check and return the draft, raising the first failure."""
    window = find_availability_window(windows, request.date)
    if window is None:
        raise NotAvailableOnDay()

    start_minutes, end_minutes = parse_candidate_range(request)
    ensure_within_window(window, start_minutes, end_minutes)

    if find_overlapping_appointment(appointments, request.doctor_id, request.date, start_minutes, end_minutes):
        raise SlotAlreadyBooked()

    return AppointmentDraft(
        doctor_id=request.doctor_id,
        date=request.date,
        start_time=combine(request.date, start_minutes),
        end_time=combine(request.date, end_minutes),
        notes=request.notes,
    )


def check_booking(
    request: BookingRequest,
    windows: Iterable[AvailabilityWindowLike],
    appointments: Iterable[AppointmentLike],
) -> BookingDecision:
    try:
        draft = validate_booking(request, windows, appointments)
    except SchedulingError as exc:
        return BookingDecision.reject(exc)

    return BookingDecision.accept(draft)
