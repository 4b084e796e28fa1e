"""
Financial analytics for the clinic panel.

Only appointments that count as revenue are considered: CONFIRMED, PAID,
inside the period and already happened (a past day, or today with a start
time at or before the clinic's current time). Revenue of an appointment is
its total price plus the products sold during it.
"""

import logging
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.db.models import Q

from appointments.models import Appointment
from professionals.models import Professional

logger = logging.getLogger(__name__)

PERIOD_WEEK = "week"
PERIOD_FILTERS = OrderedDict(
    [
        ("today", "Today"),
        (PERIOD_WEEK, "This week"),
        ("4_weeks", "Last 4 weeks"),
        ("2_months", "Last 2 months"),
        ("4_months", "Last 4 months"),
        ("6_months", "Last 6 months"),
        ("1_year", "Last year"),
        ("custom", "Custom"),
    ]
)

_LOOKBACK = {
    "4_weeks": relativedelta(days=28),
    "2_months": relativedelta(months=2),
    "4_months": relativedelta(months=4),
    "6_months": relativedelta(months=6),
    "1_year": relativedelta(years=1),
}


def _current_week(today):
    # Sunday..Saturday; date.weekday() has monday as 0
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def get_date_range(period, today, custom_from=None, custom_to=None):
    """
    (first_day, last_day) of a period filter, both inclusive.

    custom without both bounds falls back to the current week; an unknown
    filter means today only.
    """
    if period == PERIOD_WEEK:
        return _current_week(today)

    if period in _LOOKBACK:
        return today - _LOOKBACK[period], today

    if period == "custom":
        if not custom_from or not custom_to:
            return _current_week(today)
        if custom_from > custom_to:
            custom_from, custom_to = custom_to, custom_from
        return custom_from, custom_to

    return today, today


def revenue_appointments(clinic, first_day, last_day, professional_id=None, now=None):
    now = now or clinic.local_now()
    today = now.date()

    qs = (
        Appointment.objects.filter(
            clinic=clinic,
            date__gte=first_day,
            date__lte=last_day,
            status=Appointment.Status.CONFIRMED,
            payment_status=Appointment.PaymentStatus.PAID,
        )
        .filter(Q(date__lt=today) | Q(date=today, time__lte=now.strftime("%H:%M")))
        .prefetch_related("service_lines__service", "product_lines")
    )
    if professional_id:
        qs = qs.filter(professional_id=professional_id)
    return list(qs.order_by("date", "time"))


def appointment_revenue(appointment):
    return appointment.total_price + appointment.products_total


def get_metrics(appointments):
    gross = sum((appointment_revenue(a) for a in appointments), Decimal("0"))
    return {
        "gross_revenue": gross,
        "completed_services": len(appointments),
        "unique_clients": len({a.client_email.strip().lower() for a in appointments}),
    }


def get_revenue_chart(appointments, first_day, last_day):
    """One zero-filled bucket per day of the range, oldest first."""
    buckets = OrderedDict()
    day = first_day
    while day <= last_day:
        buckets[day] = Decimal("0")
        day += timedelta(days=1)

    for appointment in appointments:
        if appointment.date in buckets:
            buckets[appointment.date] += appointment_revenue(appointment)

    return [
        {"date": day.strftime("%d/%m"), "revenue": revenue}
        for day, revenue in buckets.items()
    ]


def get_services_ranking(appointments):
    """Services by how often they were performed, most frequent first."""
    ranking = {}
    for appointment in appointments:
        for line in appointment.service_lines.all():
            name = line.service.name
            entry = ranking.setdefault(name, {"name": name, "count": 0, "revenue": Decimal("0")})
            entry["count"] += 1
            entry["revenue"] += line.service.price

    ordered = sorted(ranking.values(), key=lambda e: e["count"], reverse=True)
    for index, entry in enumerate(ordered):
        entry["color"] = f"hsl({(index * 137.5) % 360:g}, 70%, 50%)"
    return ordered


def list_filter_professionals(clinic):
    return Professional.objects.filter(clinic=clinic, is_active=True).order_by("name")


def get_finance_report(clinic, period=PERIOD_WEEK, custom_from=None, custom_to=None,
                       professional_id=None, now=None):
    """Everything the finance page shows for one filter selection."""
    now = now or clinic.local_now()
    first_day, last_day = get_date_range(period, now.date(), custom_from, custom_to)
    appointments = revenue_appointments(
        clinic, first_day, last_day, professional_id=professional_id, now=now
    )

    logger.info(
        "[FINANCE] Report clinic_id=%s period=%s range=%s..%s professional_id=%s appointments=%s",
        clinic.id,
        period,
        first_day,
        last_day,
        professional_id,
        len(appointments),
    )

    return {
        "period": period,
        "first_day": first_day,
        "last_day": last_day,
        "metrics": get_metrics(appointments),
        "revenue_chart": get_revenue_chart(appointments, first_day, last_day),
        "services_ranking": get_services_ranking(appointments),
    }
