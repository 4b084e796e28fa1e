"""
Slot-conflict engine.

A clinic's schedule is a grid of fixed-size slots ("HH:MM" labels in
clinic.times, one every SLOT_MINUTES). An appointment starting at label L
with total duration D occupies required_slot_count(D) consecutive labels
from L. A time is bookable when that whole run fits on the grid and none
of its labels is taken by a non-cancelled appointment.

Scoping: with a professional only their own appointments count; without
one every appointment of the clinic counts (see blocking_appointments).
"""

import logging
import math
from datetime import date, datetime

from django.conf import settings

from appointments.models import Appointment
from .models import Professional

logger = logging.getLogger(__name__)

# ════════════════════════════════════════════════════════════════
#  Pure helpers
# ════════════════════════════════════════════════════════════════


def parse_slot(slot_time):
    """'09:30' -> (9, 30)"""
    hour, minute = str(slot_time).split(":")
    return int(hour), int(minute)


def is_slot_in_the_past(slot_time, now):
    """
    True when the slot's hour is before now's hour, or the same hour with a
    minute at or before now's minute. Only meaningful for today's slots.
    """
    hour, minute = parse_slot(slot_time)
    if hour < now.hour:
        return True
    return hour == now.hour and minute <= now.minute


def is_today(day, now):
    if isinstance(day, datetime):
        day = day.date()
    return (day.year, day.month, day.day) == (now.year, now.month, now.day)


def is_slot_sequence_available(slot_start, required_slots, all_slots, blocked_slots):
    """
    True when slot_start is on the grid, the next required_slots labels
    (start included) fit before the end of the grid, and none is blocked.
    """
    try:
        start_index = list(all_slots).index(slot_start)
    except ValueError:
        return False

    if start_index + required_slots > len(all_slots):
        return False

    blocked = set(blocked_slots)
    run = list(all_slots)[start_index:start_index + required_slots]
    return not any(slot in blocked for slot in run)


def required_slot_count(total_minutes):
    """Number of grid slots a duration occupies, never less than one."""
    return max(1, math.ceil((total_minutes or 0) / settings.SLOT_MINUTES))


def slot_run(all_slots, slot_start, required_slots):
    """The labels occupied from slot_start, clipped to the grid end."""
    all_slots = list(all_slots)
    if slot_start not in all_slots:
        return []
    start_index = all_slots.index(slot_start)
    return all_slots[start_index:start_index + required_slots]


# ════════════════════════════════════════════════════════════════
#  Queries
# ════════════════════════════════════════════════════════════════


def blocking_appointments(clinic, day, professional=None):
    """
    Non-cancelled appointments of the clinic on day.

    Without a professional the whole clinic counts, so the public page,
    the blocked-times API and the booking check agree.
    """
    qs = Appointment.objects.filter(clinic=clinic, date=day).exclude(
        status=Appointment.Status.CANCELLED
    )
    if professional is not None:
        qs = qs.filter(professional=professional)
    return qs


def blocked_slot_set(all_slots, appointments):
    """Labels occupied by the given appointments on the grid."""
    blocked = set()
    for appointment in appointments:
        run = slot_run(
            all_slots,
            appointment.time,
            required_slot_count(appointment.total_duration),
        )
        blocked.update(run)
    return blocked


def get_blocked_times(clinic, day, professional=None):
    """
    Blocked labels of clinic.times on day, in grid order.
    Every label is blocked when the clinic does not open that weekday.
    """
    all_slots = list(clinic.times or [])

    if not clinic.works_on(day):
        return all_slots

    blocked = blocked_slot_set(
        all_slots, blocking_appointments(clinic, day, professional)
    )
    return [slot for slot in all_slots if slot in blocked]


def is_bookable_day(clinic, day, now=None):
    now = now or clinic.local_now()
    return clinic.works_on(day) and day >= now.date()


def get_available_times(clinic, day, total_minutes, professional=None, now=None):
    """
    [{"time": "09:00", "available": bool}, ...] for every clinic label.

    A label is available when the clinic works that day, the day is not
    in the past, the label has not passed yet (today only) and the whole
    run of required slots is free.
    """
    now = now or clinic.local_now()
    all_slots = list(clinic.times or [])
    required = required_slot_count(total_minutes)

    if not is_bookable_day(clinic, day, now):
        return [{"time": slot, "available": False} for slot in all_slots]

    blocked = blocked_slot_set(
        all_slots, blocking_appointments(clinic, day, professional)
    )
    today = is_today(day, now)

    result = []
    for slot in all_slots:
        available = not (today and is_slot_in_the_past(slot, now))
        available = available and is_slot_sequence_available(
            slot, required, all_slots, blocked
        )
        result.append({"time": slot, "available": available})
    return result


def professional_is_free(professional, day, slot_start, total_minutes, all_slots):
    """The professional works the whole run and has no overlapping booking."""
    run = slot_run(all_slots, slot_start, required_slot_count(total_minutes))
    if len(run) < required_slot_count(total_minutes):
        return False
    if not professional.works_at(run):
        return False

    taken = blocked_slot_set(
        all_slots, blocking_appointments(professional.clinic, day, professional)
    )
    return not any(slot in taken for slot in run)


def get_available_professionals(clinic, day, slot_start, total_minutes):
    """Active professionals of the clinic who can take this booking."""
    all_slots = list(clinic.times or [])
    professionals = Professional.objects.filter(
        clinic=clinic, is_active=True
    ).order_by("name")

    return [
        professional
        for professional in professionals
        if professional_is_free(professional, day, slot_start, total_minutes, all_slots)
    ]


def parse_day(value):
    """YYYY-MM-DD -> date; raises ValueError."""
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value), "%Y-%m-%d").date()


# ════════════════════════════════════════════════════════════════
#  Professional management (clinic panel)
# ════════════════════════════════════════════════════════════════


class ProfessionalError(Exception):
    def __init__(self, message, code="PROFESSIONAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


def list_professionals(clinic):
    """Newest first, inactive ones included."""
    return Professional.objects.filter(clinic=clinic).order_by("-created_at", "-id")


def get_professional(clinic, professional_id):
    try:
        return Professional.objects.get(id=professional_id, clinic=clinic)
    except Professional.DoesNotExist:
        raise ProfessionalError("Professional not found.", "NOT_FOUND")


def create_professional(clinic, **data):
    professional = Professional.objects.create(clinic=clinic, **data)
    logger.info(
        "[CLINIC] Professional %s created for clinic_id=%s",
        professional.id,
        clinic.id,
    )
    return professional


def update_professional(clinic, professional_id, **data):
    professional = get_professional(clinic, professional_id)
    for attr, value in data.items():
        setattr(professional, attr, value)
    professional.save()
    return professional


def toggle_professional_status(clinic, professional_id):
    professional = get_professional(clinic, professional_id)
    professional.is_active = not professional.is_active
    professional.save(update_fields=["is_active"])
    logger.info(
        "[CLINIC] Professional %s is_active=%s clinic_id=%s",
        professional.id,
        professional.is_active,
        clinic.id,
    )
    return professional


def delete_professional(clinic, professional_id):
    """Past appointments keep their data with no professional attached."""
    professional = get_professional(clinic, professional_id)
    professional.delete()
    logger.info(
        "[CLINIC] Professional %s deleted clinic_id=%s", professional_id, clinic.id
    )
