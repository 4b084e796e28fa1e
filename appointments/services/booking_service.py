"""
Appointment booking service.

Handles the complete public booking flow:
1. Validate the clinic exists and is active
2. Validate every requested service exists, is active and belongs to the clinic
3. Validate the client name and phone are present and the email is valid
4. Validate the day is a working day and not in the past
5. Validate the time is on the clinic grid and has not passed today
6. Validate the optional professional (active, same clinic, works the whole run)
7. Acquire row-level locks and re-check the slot run under the lock
8. Create the appointment and one AppointmentService per service

Uses select_for_update() on the clinic row so concurrent bookings for the
same clinic are serialized, then re-reads the blocking appointments.
"""

import logging
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction

from appointments.email_utils import send_booking_email
from appointments.models import Appointment, AppointmentService
from catalog.models import Service
from clinics.models import Clinic
from professionals.models import Professional
from professionals.services import (
    blocked_slot_set,
    blocking_appointments,
    is_slot_in_the_past,
    is_slot_sequence_available,
    required_slot_count,
    slot_run,
)

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base exception for booking failures."""

    def __init__(self, message, code="booking_error"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class SlotUnavailableError(BookingError):
    """Raised when some slot of the requested run is already taken."""

    def __init__(self, message="This time is no longer available. Please select another one."):
        super().__init__(message, code="slot_unavailable")


class InvalidSlotError(BookingError):
    """Raised when the time is not on the grid or the run does not fit."""

    def __init__(self, message="The selected time is not a valid slot for this clinic."):
        super().__init__(message, code="invalid_slot")


class PastDateError(BookingError):
    """Raised when trying to book a day or a slot that already passed."""

    def __init__(self, message="Cannot book appointments for past dates."):
        super().__init__(message, code="past_date")


class ClosedDayError(BookingError):
    """Raised when the clinic does not open on the requested weekday."""

    def __init__(self, message="The clinic does not work on the selected day."):
        super().__init__(message, code="closed_day")


def _load_services(clinic, service_ids):
    unique_ids = list(dict.fromkeys(service_ids))
    if not unique_ids:
        raise BookingError("Select at least one service.", code="no_services")

    services = list(
        Service.objects.filter(id__in=unique_ids, clinic=clinic, is_active=True)
    )
    if len(services) != len(unique_ids):
        raise BookingError(
            "One or more services are unavailable.", code="invalid_services"
        )

    # Keep the client's selection order
    by_id = {service.id: service for service in services}
    return [by_id[service_id] for service_id in unique_ids]


def _clean_client(client_name, client_email, client_phone):
    client_name = (client_name or "").strip()
    client_email = (client_email or "").strip()
    client_phone = (client_phone or "").strip()

    if not client_name or not client_phone:
        raise BookingError(
            "Please provide your name and phone number.", code="invalid_client"
        )
    try:
        validate_email(client_email)
    except ValidationError:
        raise BookingError("Please provide a valid email address.", code="invalid_client")

    return client_name, client_email, client_phone


def _load_professional(clinic, professional_id):
    if professional_id is None:
        return None
    try:
        return Professional.objects.get(id=professional_id, clinic=clinic, is_active=True)
    except Professional.DoesNotExist:
        raise BookingError(
            "Professional not found or inactive.", code="invalid_professional"
        )


def _check_run_is_free(clinic, appointment_date, appointment_time, required, professional):
    all_slots = list(clinic.times or [])
    blocked = blocked_slot_set(
        all_slots, blocking_appointments(clinic, appointment_date, professional)
    )
    if not is_slot_sequence_available(appointment_time, required, all_slots, blocked):
        raise SlotUnavailableError()


def book_appointment(
    *,
    clinic_id: int,
    service_ids: list,
    appointment_date: date,
    appointment_time: str,
    client_name: str,
    client_email: str,
    client_phone: str,
    professional_id=None,
) -> Appointment:
    """
    Book an appointment from the public clinic page.

    Returns:
        The created Appointment instance (status PENDING).

    Raises:
        BookingError: If any validation fails.
        ClosedDayError: If the clinic is closed that weekday.
        PastDateError: If the day or the slot already passed.
        InvalidSlotError: If the time is off-grid or the run does not fit.
        SlotUnavailableError: If the run overlaps another booking.
    """

    # ── 1. Clinic ─────────────────────────────────────────────────────
    try:
        clinic = Clinic.objects.get(id=clinic_id, is_active=True)
    except Clinic.DoesNotExist:
        raise BookingError("Clinic not found or inactive.", code="invalid_clinic")

    # ── 2. Services ───────────────────────────────────────────────────
    services = _load_services(clinic, service_ids)
    total_price = sum((service.price for service in services), Decimal("0"))
    total_duration = sum(service.duration_minutes for service in services)
    required = required_slot_count(total_duration)

    # ── 3. Client details ─────────────────────────────────────────────
    client_name, client_email, client_phone = _clean_client(
        client_name, client_email, client_phone
    )

    # ── 4. Day ────────────────────────────────────────────────────────
    now = clinic.local_now()
    if appointment_date < now.date():
        raise PastDateError()

    if not clinic.works_on(appointment_date):
        raise ClosedDayError()

    # ── 5. Time on the grid ───────────────────────────────────────────
    all_slots = list(clinic.times or [])
    if appointment_time not in all_slots:
        raise InvalidSlotError()

    if appointment_date == now.date() and is_slot_in_the_past(appointment_time, now):
        raise PastDateError("Cannot book a slot that has already passed today.")

    run = slot_run(all_slots, appointment_time, required)
    if len(run) < required:
        raise InvalidSlotError(
            "The selected services do not fit before the clinic closes."
        )

    # ── 6. Professional ───────────────────────────────────────────────
    professional = _load_professional(clinic, professional_id)
    if professional is not None and not professional.works_at(run):
        raise BookingError(
            "The professional does not work at the selected time.",
            code="professional_unavailable",
        )

    # Quick pre-check before acquiring lock (fail fast)
    _check_run_is_free(clinic, appointment_date, appointment_time, required, professional)

    # ── 7. Lock and re-validate (atomic) ──────────────────────────────
    with transaction.atomic():
        Clinic.objects.select_for_update().get(id=clinic.id)
        list(
            blocking_appointments(clinic, appointment_date, professional)
            .select_for_update()
            .values_list("id", flat=True)
        )

        _check_run_is_free(
            clinic, appointment_date, appointment_time, required, professional
        )

        # ── 8. Create ─────────────────────────────────────────────────
        appointment = Appointment.objects.create(
            clinic=clinic,
            professional=professional,
            client_name=client_name,
            client_email=client_email,
            client_phone=client_phone,
            date=appointment_date,
            time=appointment_time,
            status=Appointment.Status.PENDING,
            total_price=total_price,
            total_duration=total_duration,
        )
        AppointmentService.objects.bulk_create(
            [
                AppointmentService(appointment=appointment, service=service)
                for service in services
            ]
        )

        transaction.on_commit(lambda: send_booking_email(appointment.id))

    logger.info(
        "[BOOKING] Appointment %s created clinic_id=%s date=%s time=%s slots=%s professional_id=%s",
        appointment.id,
        clinic.id,
        appointment_date,
        appointment_time,
        required,
        professional.id if professional else None,
    )

    return appointment
