"""
Clinic Appointments Service.

Everything the clinic panel does with existing appointments:
- day view and full listing
- confirmation / cancellation with a rendered WhatsApp message
- payment status changes
- products sold during an appointment

Every lookup is scoped to the caller's clinic; an id from another clinic is
reported as not found.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from appointments.messaging import (
    render_for_appointment,
    render_for_appointments,
    whatsapp_url,
)
from appointments.models import Appointment, AppointmentProduct
from catalog.models import Product
from clinics.models import WhatsappMessage

logger = logging.getLogger(__name__)


class AppointmentActionError(Exception):
    """Base exception for panel actions on appointments."""

    def __init__(self, message, code="appointment_error"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class AppointmentNotFoundError(AppointmentActionError):
    def __init__(self, message="Appointment not found."):
        super().__init__(message, code="not_found")


class PaymentError(AppointmentActionError):
    """Raised when a payment status change is not allowed."""

    def __init__(self, message, code="payment_error"):
        super().__init__(message, code=code)


# ── Internal helpers ─────────────────────────────────────────────────────────


def _base_qs(clinic):
    return (
        Appointment.objects.filter(clinic=clinic)
        .select_related("professional")
        .prefetch_related("service_lines__service", "product_lines__product")
    )


def _templates(clinic):
    return WhatsappMessage.objects.filter(clinic=clinic).first()


def _message_payload(template, appointments):
    """(message, url) for the first appointment's phone, or (None, None)."""
    if not template:
        return None, None

    if len(appointments) == 1:
        message = render_for_appointment(template, appointments[0])
    else:
        message = render_for_appointments(template, appointments)
    return message, whatsapp_url(appointments[0].client_phone, message)


# ── Queries ──────────────────────────────────────────────────────────────────


def get_appointment(clinic, appointment_id):
    try:
        return _base_qs(clinic).get(id=appointment_id)
    except Appointment.DoesNotExist:
        raise AppointmentNotFoundError()


def get_day_appointments(clinic, day):
    """Appointments of one day in grid order, cancelled ones included."""
    return list(_base_qs(clinic).filter(date=day).order_by("time", "created_at"))


def list_appointments(clinic, status=None):
    """Newest date/time first, optionally filtered by status."""
    qs = _base_qs(clinic)
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("-date", "-time"))


# ── Confirmation / cancellation ──────────────────────────────────────────────


def confirm_appointment(clinic, appointment_id):
    """
    Mark as CONFIRMED and build the WhatsApp confirmation link.

    Returns dict(appointment, message, whatsapp_url).
    """
    appointment = get_appointment(clinic, appointment_id)

    templates = _templates(clinic)
    if templates is None or not templates.confirmation_message:
        raise AppointmentActionError(
            "No confirmation message configured. Set it up in the clinic profile.",
            code="no_template",
        )

    if appointment.status == Appointment.Status.CANCELLED:
        raise AppointmentActionError(
            "A cancelled appointment cannot be confirmed.", code="cancelled"
        )

    if appointment.status != Appointment.Status.CONFIRMED:
        appointment.status = Appointment.Status.CONFIRMED
        appointment.save(update_fields=["status", "updated_at"])

    message, url = _message_payload(templates.confirmation_message, [appointment])

    logger.info(
        "[WHATSAPP] Confirmation prepared for appointment %s clinic_id=%s",
        appointment.id,
        clinic.id,
    )
    return {"appointment": appointment, "message": message, "whatsapp_url": url}


@transaction.atomic
def cancel_appointment(clinic, appointment_id):
    """
    Mark as CANCELLED so the slots free up.
    message / whatsapp_url are None when the clinic has no cancellation template.
    """
    appointment = get_appointment(clinic, appointment_id)

    appointment.status = Appointment.Status.CANCELLED
    appointment.save(update_fields=["status", "updated_at"])

    templates = _templates(clinic)
    message, url = _message_payload(
        templates.cancellation_message if templates else None, [appointment]
    )

    logger.info(
        "[BOOKING] Appointment %s cancelled by clinic_id=%s", appointment.id, clinic.id
    )
    return {"appointment": appointment, "message": message, "whatsapp_url": url}


@transaction.atomic
def cancel_multiple_appointments(clinic, appointment_ids):
    """
    Cancel several appointments of this clinic at once (ids of other
    clinics are ignored). One message covers all of them.
    """
    appointments = list(
        _base_qs(clinic)
        .filter(id__in=list(appointment_ids))
        .order_by("date", "time")
    )
    if not appointments:
        raise AppointmentNotFoundError("No appointments found.")

    Appointment.objects.filter(id__in=[a.id for a in appointments]).update(
        status=Appointment.Status.CANCELLED, updated_at=timezone.now()
    )
    for appointment in appointments:
        appointment.status = Appointment.Status.CANCELLED

    templates = _templates(clinic)
    message, url = _message_payload(
        templates.cancellation_message if templates else None, appointments
    )

    logger.info(
        "[BOOKING] %s appointments cancelled by clinic_id=%s ids=%s",
        len(appointments),
        clinic.id,
        [a.id for a in appointments],
    )
    return {"appointments": appointments, "message": message, "whatsapp_url": url}


# ── Payments ─────────────────────────────────────────────────────────────────


def _confirmed_appointment(clinic, appointment_id):
    appointment = get_appointment(clinic, appointment_id)
    if appointment.status != Appointment.Status.CONFIRMED:
        raise PaymentError(
            "Only confirmed appointments can have their payment updated.",
            code="not_confirmed",
        )
    return appointment


def mark_paid(clinic, appointment_id, payment_method):
    if payment_method not in Appointment.PaymentMethod.values:
        raise PaymentError("Invalid payment method.", code="invalid_method")

    appointment = _confirmed_appointment(clinic, appointment_id)
    appointment.payment_status = Appointment.PaymentStatus.PAID
    appointment.payment_method = payment_method
    appointment.paid_at = timezone.now()
    appointment.save(
        update_fields=["payment_status", "payment_method", "paid_at", "updated_at"]
    )

    logger.info(
        "[PAYMENT] Appointment %s paid via %s clinic_id=%s",
        appointment.id,
        payment_method,
        clinic.id,
    )
    return appointment


def mark_overdue(clinic, appointment_id):
    appointment = _confirmed_appointment(clinic, appointment_id)
    if appointment.payment_status == Appointment.PaymentStatus.PAID:
        raise PaymentError(
            "This appointment is already paid.", code="already_paid"
        )

    appointment.payment_status = Appointment.PaymentStatus.OVERDUE
    appointment.save(update_fields=["payment_status", "updated_at"])

    logger.info(
        "[PAYMENT] Appointment %s marked overdue clinic_id=%s",
        appointment.id,
        clinic.id,
    )
    return appointment


# ── Products ─────────────────────────────────────────────────────────────────


@transaction.atomic
def add_product(clinic, appointment_id, product_id, quantity=1):
    """
    Attach a product. Adding one already on the appointment replaces its
    quantity and recomputes the line total.
    """
    if quantity < 1:
        raise AppointmentActionError(
            "Quantity must be at least 1.", code="invalid_quantity"
        )

    appointment = get_appointment(clinic, appointment_id)

    try:
        product = Product.objects.get(id=product_id, clinic=clinic, is_active=True)
    except Product.DoesNotExist:
        raise AppointmentActionError("Product not found.", code="not_found")

    total_price = (product.price * Decimal(quantity)).quantize(Decimal("0.01"))
    line, created = AppointmentProduct.objects.update_or_create(
        appointment=appointment,
        product=product,
        defaults={
            "quantity": quantity,
            "unit_price": product.price,
            "total_price": total_price,
        },
    )

    logger.info(
        "[BOOKING] Product %s %s on appointment %s (qty=%s)",
        product.id,
        "added" if created else "updated",
        appointment.id,
        quantity,
    )
    return line


def remove_product(clinic, appointment_product_id):
    deleted, _ = AppointmentProduct.objects.filter(
        id=appointment_product_id, appointment__clinic=clinic
    ).delete()
    if not deleted:
        raise AppointmentActionError(
            "Appointment product not found.", code="not_found"
        )
