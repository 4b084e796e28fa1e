# appointments/services package
#
#   from appointments.services import BookingError, book_appointment
#   from appointments.services import confirm_appointment, mark_paid

from appointments.services.booking_service import (  # noqa: F401
    BookingError,
    ClosedDayError,
    SlotUnavailableError,
    InvalidSlotError,
    PastDateError,
    book_appointment,
)

from appointments.services.clinic_appointments_service import (  # noqa: F401
    AppointmentActionError,
    AppointmentNotFoundError,
    PaymentError,
    add_product,
    cancel_appointment,
    cancel_multiple_appointments,
    confirm_appointment,
    get_appointment,
    get_day_appointments,
    list_appointments,
    mark_overdue,
    mark_paid,
    remove_product,
)
