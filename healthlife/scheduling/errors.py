"""Booking validation failures.

Every error here is a user-facing rejection, not a crash. ``field`` names the
form field the message belongs to and ``code`` is a stable identifier that
clients can switch on.
"""


class SchedulingError(Exception):
    code = 'scheduling_error'
    field: str | None = None

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if field is not None:
            self.field = field

    def to_detail(self) -> dict:
        return {'field': self.field, 'code': self.code, 'message': self.message}


class InvalidTimeFormat(SchedulingError):
    code = 'invalid_time_format'
    field = 'start_time'


class NotAvailableOnDay(SchedulingError):
    code = 'not_available_on_day'
    field = 'date'

    def __init__(self, message: str = 'Doctor is not available on this day') -> None:
        super().__init__(message)


class OutsideAvailableHours(SchedulingError):
    code = 'outside_available_hours'
    field = 'start_time'


class SlotAlreadyBooked(SchedulingError):
    code = 'slot_already_booked'
    field = 'start_time'

    def __init__(self, message: str = 'This time slot is already booked with another patient') -> None:
        super().__init__(message)
