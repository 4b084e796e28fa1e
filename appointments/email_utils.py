import logging

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from django.conf import settings
from django.utils.html import escape

from .messaging import format_currency, format_date

logger = logging.getLogger(__name__)


def _is_email_configured():
    return bool(settings.BREVO_API_KEY and settings.BREVO_SENDER_EMAIL)


def _get_brevo_api():
    """Initialize and return Brevo API instance"""
    configuration = sib_api_v3_sdk.Configuration()
    configuration.api_key["api-key"] = settings.BREVO_API_KEY
    api_client = sib_api_v3_sdk.ApiClient(configuration)
    return sib_api_v3_sdk.TransactionalEmailsApi(api_client)


def _send_email(to_email, subject, html_content, text_content):
    """Send a single transactional email via Brevo"""
    api_instance = _get_brevo_api()

    send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
        to=[{"email": to_email}],
        sender={
            "name": settings.BREVO_SENDER_NAME,
            "email": settings.BREVO_SENDER_EMAIL,
        },
        subject=subject,
        html_content=html_content,
        text_content=text_content,
    )

    api_instance.send_transac_email(send_smtp_email)


def send_booking_email(appointment_id):
    """
    Tell the client their request was received.
    Runs after commit; a failure is logged and never reaches the booking.
    """
    from .models import Appointment

    if not _is_email_configured():
        logger.info(
            "[EMAIL] Brevo not configured, skipping booking email for appointment %s",
            appointment_id,
        )
        return False

    appointment = (
        Appointment.objects.select_related("clinic", "professional")
        .prefetch_related("service_lines__service")
        .filter(id=appointment_id)
        .first()
    )
    if appointment is None:
        return False

    clinic = appointment.clinic
    professional = appointment.professional.name if appointment.professional else "-"
    subject = f"Booking received - {clinic.name}"
    text_content = (
        f"Hello {appointment.client_name},\n\n"
        f"We received your booking at {clinic.name}.\n\n"
        f"Services: {appointment.service_names}\n"
        f"Professional: {professional}\n"
        f"Date: {format_date(appointment.date)} at {appointment.time}\n"
        f"Total: {format_currency(appointment.total_price)}\n\n"
        f"The clinic will contact you on WhatsApp to confirm.\n\n"
        f"{clinic.name}"
    )
    html_content = (
        f"<h2>Hello {escape(appointment.client_name)}!</h2>"
        f"<p>We received your booking at <strong>{escape(clinic.name)}</strong>.</p>"
        f"<ul>"
        f"<li>Services: {escape(appointment.service_names)}</li>"
        f"<li>Professional: {escape(professional)}</li>"
        f"<li>Date: {format_date(appointment.date)} at {appointment.time}</li>"
        f"<li>Total: {format_currency(appointment.total_price)}</li>"
        f"</ul>"
        f"<p>The clinic will contact you on WhatsApp to confirm.</p>"
    )

    try:
        _send_email(appointment.client_email, subject, html_content, text_content)
    except ApiException as e:
        logger.error(
            "[EMAIL] Brevo API error sending booking email to %s: %s",
            appointment.client_email,
            e,
        )
        return False
    except Exception as e:
        logger.error(
            "[EMAIL] Failed to send booking email to %s: %s",
            appointment.client_email,
            e,
        )
        return False

    logger.info("[EMAIL] Booking email sent for appointment %s", appointment.id)
    return True
