"""
WhatsApp message rendering for appointment confirmations and cancellations.

Clinic templates use bracketed placeholders:
    [Nome-cliente] [servico] [profissional] [data] [hora] [valor]
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from urllib.parse import quote

from django.conf import settings

NOT_INFORMED = "Not informed"


def format_currency(value):
    """Decimal("1234.5") -> "R$ 1.234,50" """
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, _, cents = f"{abs(amount):.2f}".partition(".")
    grouped = f"{int(integer):,}".replace(",", ".")
    return f"{sign}{settings.CURRENCY_SYMBOL} {grouped},{cents}"


def format_date(day):
    return day.strftime("%d/%m/%Y")


def render_template(template, *, client_name, services, professional_name, day, time, value):
    replacements = {
        "[Nome-cliente]": client_name,
        "[servico]": services,
        "[profissional]": professional_name or NOT_INFORMED,
        "[data]": format_date(day),
        "[hora]": time,
        "[valor]": format_currency(value),
    }
    pattern = re.compile("|".join(re.escape(key) for key in replacements))
    return pattern.sub(lambda match: replacements[match.group(0)], template)


def render_for_appointment(template, appointment):
    return render_template(
        template,
        client_name=appointment.client_name,
        services=appointment.service_names,
        professional_name=appointment.professional.name if appointment.professional else None,
        day=appointment.date,
        time=appointment.time,
        value=appointment.total_price,
    )


def render_for_appointments(template, appointments):
    """
    One message for several appointments of the same client: services are
    joined, values summed, and client/date/time come from the first one.
    """
    first = appointments[0]
    services = ", ".join(a.service_names for a in appointments if a.service_names)
    total = sum((a.total_price for a in appointments), Decimal("0"))
    return render_template(
        template,
        client_name=first.client_name,
        services=services,
        professional_name=first.professional.name if first.professional else None,
        day=first.date,
        time=first.time,
        value=total,
    )


def whatsapp_phone(phone):
    digits = re.sub(r"\D", "", phone or "")
    country = settings.WHATSAPP_COUNTRY_CODE
    return digits if digits.startswith(country) else f"{country}{digits}"


def whatsapp_url(phone, text):
    return f"https://wa.me/{whatsapp_phone(phone)}?text={quote(text, safe='')}"
