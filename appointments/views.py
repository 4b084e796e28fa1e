from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from appointments.messaging import format_currency
from appointments.models import Appointment
from appointments.services import (
    AppointmentActionError,
    BookingError,
    book_appointment,
    cancel_appointment,
    cancel_multiple_appointments,
    confirm_appointment,
    list_appointments,
    mark_overdue,
    mark_paid,
)
from catalog.models import Service
from catalog.services import get_active_services
from clinics.models import Clinic
from clinics.services import get_review_summary
from professionals.services import (
    get_available_professionals,
    get_available_times,
    parse_day,
)


def _selected_services(clinic, service_ids):
    ids = [int(s) for s in service_ids if str(s).isdigit()]
    return list(Service.objects.filter(clinic=clinic, id__in=ids, is_active=True))


def _require_clinic(request):
    if getattr(request, "clinic", None) is None:
        return HttpResponseForbidden("You are not assigned to any active clinic.")
    return None


# ─── Public booking ───────────────────────────────────────────────────────


def book_appointment_view(request, clinic_id):
    """
    Public booking page.

    Steps: Select services → Pick date → Pick time (HTMX) → Pick professional (HTMX) → Contact details
    """
    clinic = get_object_or_404(Clinic, id=clinic_id, is_active=True)

    if request.method == "POST":
        try:
            appointment = book_appointment(
                clinic_id=clinic.id,
                service_ids=[int(s) for s in request.POST.getlist("service_ids")],
                professional_id=int(request.POST["professional_id"])
                if request.POST.get("professional_id")
                else None,
                appointment_date=parse_day(request.POST.get("date", "").strip()),
                appointment_time=request.POST.get("time", "").strip(),
                client_name=request.POST.get("name", ""),
                client_email=request.POST.get("email", ""),
                client_phone=request.POST.get("phone", ""),
            )
        except BookingError as e:
            messages.error(request, e.message)
        except (ValueError, TypeError):
            messages.error(request, "Please fill in every field with valid values.")
        else:
            request.session["last_booking_id"] = appointment.id
            messages.success(request, f"Booking received! Reference #{appointment.id}")
            return redirect("appointments:booking_confirmation", appointment_id=appointment.id)

        return redirect("appointments:book", clinic_id=clinic.id)

    services = get_active_services(clinic)
    summary = get_review_summary(clinic)

    context = {
        "clinic": clinic,
        "services": services,
        "professionals": clinic.professionals.filter(is_active=True).order_by("name"),
        "today": clinic.local_today().isoformat(),
        **summary,
    }
    return render(request, "appointments/book_appointment.html", context)


def load_available_times(request, clinic_id):
    """HTMX endpoint: time grid for a date and a set of services."""
    clinic = get_object_or_404(Clinic, id=clinic_id, is_active=True)
    date_str = request.GET.get("date")
    services = _selected_services(clinic, request.GET.getlist("service_ids"))

    if not date_str or not services:
        return render(request, "appointments/partials/time_slots.html", {"slots": []})

    try:
        target_date = parse_day(date_str)
    except ValueError:
        return render(request, "appointments/partials/time_slots.html", {"slots": []})

    professional = None
    professional_id = request.GET.get("professional_id")
    if professional_id:
        professional = clinic.professionals.filter(
            id=professional_id, is_active=True
        ).first()

    total_minutes = sum(s.duration_minutes for s in services)
    slots = get_available_times(clinic, target_date, total_minutes, professional)

    context = {
        "slots": slots,
        "available_slots": [s for s in slots if s["available"]],
        "target_date": target_date,
        "closed": not clinic.works_on(target_date),
        "total_minutes": total_minutes,
        "total_price": format_currency(sum(s.price for s in services)),
    }
    return render(request, "appointments/partials/time_slots.html", context)


def load_available_professionals(request, clinic_id):
    """HTMX endpoint: professionals free for the chosen date, time and services."""
    clinic = get_object_or_404(Clinic, id=clinic_id, is_active=True)
    services = _selected_services(clinic, request.GET.getlist("service_ids"))
    time_label = request.GET.get("time", "")

    professionals = []
    try:
        target_date = parse_day(request.GET.get("date", ""))
    except ValueError:
        target_date = None

    if target_date and services and time_label:
        professionals = get_available_professionals(
            clinic, target_date, time_label, sum(s.duration_minutes for s in services)
        )

    return render(
        request,
        "appointments/partials/professionals.html",
        {"professionals": professionals},
    )


def booking_confirmation(request, appointment_id):
    """Shown right after booking; only to the browser that made the booking."""
    if request.session.get("last_booking_id") != appointment_id:
        return HttpResponseForbidden("This booking is not available.")

    appointment = get_object_or_404(
        Appointment.objects.select_related("clinic", "professional").prefetch_related(
            "service_lines__service"
        ),
        id=appointment_id,
    )
    context = {
        "appointment": appointment,
        "total_price": format_currency(appointment.total_price),
    }
    return render(request, "appointments/booking_confirmation.html", context)


# ─── Panel actions ────────────────────────────────────────────────────────


@login_required
@require_POST
def confirm_appointment_view(request, appointment_id):
    denied = _require_clinic(request)
    if denied:
        return denied

    try:
        result = confirm_appointment(request.clinic, appointment_id)
    except AppointmentActionError as e:
        messages.error(request, e.message)
        return redirect("clinics:dashboard")

    messages.success(request, "Appointment confirmed.")
    return redirect(result["whatsapp_url"])


@login_required
@require_POST
def cancel_appointment_view(request, appointment_id):
    denied = _require_clinic(request)
    if denied:
        return denied

    try:
        result = cancel_appointment(request.clinic, appointment_id)
    except AppointmentActionError as e:
        messages.error(request, e.message)
        return redirect("clinics:dashboard")

    messages.success(request, "Appointment cancelled.")
    if result["whatsapp_url"]:
        return redirect(result["whatsapp_url"])
    return redirect("clinics:dashboard")


@login_required
@require_POST
def cancel_multiple_view(request):
    denied = _require_clinic(request)
    if denied:
        return denied

    ids = [int(i) for i in request.POST.getlist("appointment_ids") if i.isdigit()]
    try:
        result = cancel_multiple_appointments(request.clinic, ids)
    except AppointmentActionError as e:
        messages.error(request, e.message)
        return redirect("clinics:dashboard")

    messages.success(
        request, f"{len(result['appointments'])} appointment(s) cancelled."
    )
    if result["whatsapp_url"]:
        return redirect(result["whatsapp_url"])
    return redirect("clinics:dashboard")


@login_required
def payments_view(request):
    """Confirmed appointments with their payment status; POST updates one."""
    denied = _require_clinic(request)
    if denied:
        return denied

    if request.method == "POST":
        appointment_id = request.POST.get("appointment_id", "")
        action = request.POST.get("action")
        try:
            if not appointment_id.isdigit():
                raise AppointmentActionError("Appointment not found.", code="not_found")
            if action == "mark_paid":
                mark_paid(
                    request.clinic, int(appointment_id), request.POST.get("payment_method", "")
                )
                messages.success(request, "Payment registered.")
            elif action == "mark_overdue":
                mark_overdue(request.clinic, int(appointment_id))
                messages.success(request, "Appointment marked as overdue.")
            else:
                messages.error(request, "Unknown action.")
        except AppointmentActionError as e:
            messages.error(request, e.message)
        return redirect("appointments:payments")

    appointments = list_appointments(
        request.clinic, status=Appointment.Status.CONFIRMED
    )
    return render(
        request,
        "appointments/payments.html",
        {
            "appointments": appointments,
            "payment_methods": Appointment.PaymentMethod.choices,
        },
    )
