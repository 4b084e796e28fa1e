from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden
from django.shortcuts import render

from appointments.messaging import format_currency
from professionals.services import parse_day
from .services import (
    PERIOD_FILTERS,
    PERIOD_WEEK,
    get_finance_report,
    list_filter_professionals,
)


def _optional_day(value):
    if not value:
        return None
    return parse_day(value)


@login_required
def finance_view(request):
    """Revenue metrics, daily chart data and services ranking."""
    if getattr(request, "clinic", None) is None:
        return HttpResponseForbidden("You are not assigned to any active clinic.")

    period = request.GET.get("period", PERIOD_WEEK)
    professional_id = request.GET.get("professional_id", "")
    try:
        custom_from = _optional_day(request.GET.get("custom_from"))
        custom_to = _optional_day(request.GET.get("custom_to"))
    except ValueError:
        messages.error(request, "Invalid custom period.")
        custom_from = custom_to = None

    report = get_finance_report(
        request.clinic,
        period=period,
        custom_from=custom_from,
        custom_to=custom_to,
        professional_id=int(professional_id) if professional_id.isdigit() else None,
    )

    context = {
        **report,
        "gross_revenue": format_currency(report["metrics"]["gross_revenue"]),
        "period_filters": PERIOD_FILTERS.items(),
        "professionals": list_filter_professionals(request.clinic),
        "selected_professional": professional_id,
        "custom_from": custom_from,
        "custom_to": custom_to,
    }
    return render(request, "finance/finance.html", context)
