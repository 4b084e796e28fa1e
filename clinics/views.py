from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from appointments.messaging import format_currency
from appointments.models import Appointment
from appointments.services import get_day_appointments
from professionals.services import parse_day
from .models import WEEKDAYS
from .services import (
    create_reminder,
    delete_reminder,
    get_whatsapp_messages,
    is_valid_time_zone,
    list_reminders,
    normalize_times,
    normalize_working_days,
    update_clinic_profile,
    upsert_whatsapp_messages,
)


def _require_clinic(request):
    if getattr(request, "clinic", None) is None:
        return HttpResponseForbidden("You are not assigned to any active clinic.")
    return None


@login_required
def dashboard(request):
    """
    Day view of the clinic schedule.

    ?date=YYYY-MM-DD picks the day; defaults to the clinic's today.
    """
    denied = _require_clinic(request)
    if denied:
        return denied

    clinic = request.clinic
    try:
        day = parse_day(request.GET["date"]) if request.GET.get("date") else clinic.local_today()
    except ValueError:
        messages.error(request, "Invalid date.")
        day = clinic.local_today()

    appointments = get_day_appointments(clinic, day)
    active = [a for a in appointments if a.status != Appointment.Status.CANCELLED]

    context = {
        "clinic": clinic,
        "day": day,
        "appointments": appointments,
        "pending_count": sum(1 for a in active if a.status == Appointment.Status.PENDING),
        "confirmed_count": sum(1 for a in active if a.status == Appointment.Status.CONFIRMED),
        "day_total": format_currency(sum(a.total_price for a in active)),
        "reminders": list_reminders(clinic),
        "has_confirmation_template": bool(
            getattr(get_whatsapp_messages(clinic), "confirmation_message", "")
        ),
        "is_working_day": clinic.works_on(day),
    }
    return render(request, "clinics/dashboard.html", context)


@login_required
@require_POST
def add_reminder(request):
    denied = _require_clinic(request)
    if denied:
        return denied

    text = request.POST.get("text", "").strip()
    if not text:
        messages.error(request, "Reminder text is required.")
    elif len(text) > 500:
        messages.error(request, "Reminder text is too long.")
    else:
        create_reminder(request.clinic, text, user=request.user)
    return redirect("clinics:dashboard")


@login_required
@require_POST
def remove_reminder(request, reminder_id):
    denied = _require_clinic(request)
    if denied:
        return denied

    if not delete_reminder(request.clinic, reminder_id):
        messages.error(request, "Reminder not found.")
    return redirect("clinics:dashboard")


@login_required
def clinic_settings(request):
    """Clinic profile, schedule grid and WhatsApp templates."""
    denied = _require_clinic(request)
    if denied:
        return denied

    clinic = request.clinic
    templates = get_whatsapp_messages(clinic)

    if request.method == "POST":
        if clinic.owner_id != request.user.id:
            return HttpResponseForbidden("Only the clinic owner can change settings.")

        errors = []
        name = request.POST.get("name", "").strip()
        time_zone = request.POST.get("time_zone", "").strip()
        if len(name) < 2:
            errors.append("Name must be at least 2 characters long.")
        if not is_valid_time_zone(time_zone):
            errors.append("Unknown time zone.")

        times = []
        working_days = []
        try:
            times = normalize_times(
                t for t in request.POST.get("times", "").replace(",", " ").split() if t
            )
            working_days = normalize_working_days(request.POST.getlist("working_days"))
        except ValueError as e:
            errors.append(str(e))

        if errors:
            for error in errors:
                messages.error(request, error)
            return redirect("clinics:settings")

        update_clinic_profile(
            clinic,
            name=name,
            address=request.POST.get("address", "").strip(),
            phone=request.POST.get("phone", "").strip(),
            image_url=request.POST.get("image_url", "").strip(),
            time_zone=time_zone,
            times=times,
            working_days=working_days,
            is_active=request.POST.get("is_active") == "on",
        )
        upsert_whatsapp_messages(
            clinic,
            confirmation_message=request.POST.get("confirmation_message", ""),
            cancellation_message=request.POST.get("cancellation_message", ""),
        )
        messages.success(request, "Settings saved.")
        return redirect("clinics:settings")

    context = {
        "clinic": clinic,
        "weekdays": WEEKDAYS,
        "times_text": " ".join(clinic.times or []),
        "confirmation_message": templates.confirmation_message if templates else "",
        "cancellation_message": templates.cancellation_message if templates else "",
    }
    return render(request, "clinics/settings.html", context)
