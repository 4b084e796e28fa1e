"""
Clinic tenant logic: resolving the caller's clinic, creating clinics,
profile settings, WhatsApp templates, reminders and public reviews.
"""

import logging
import re
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.db import transaction
from django.db.models import Avg, Count

from .models import WEEKDAYS, Clinic, ClinicStaff, Reminder, Review, WhatsappMessage

logger = logging.getLogger(__name__)

TIME_LABEL_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def get_user_clinic(user):
    """
    The clinic a panel user works in, or None.

    Owners get their first owned clinic; staff their first active membership.
    """
    if user is None or not user.is_authenticated:
        return None

    clinic = (
        Clinic.objects.filter(owner=user).order_by("created_at").first()
    )
    if clinic is not None:
        return clinic

    staff_entry = (
        ClinicStaff.objects.filter(user=user, is_active=True)
        .select_related("clinic")
        .first()
    )
    return staff_entry.clinic if staff_entry else None


@transaction.atomic
def create_clinic(owner, name, address="", phone="", **extra):
    """Create a clinic together with its default service category."""
    from catalog.services import create_default_category

    clinic = Clinic.objects.create(
        owner=owner, name=name, address=address or "", phone=phone or "", **extra
    )
    create_default_category(clinic)
    logger.info("[CLINIC] Created clinic_id=%s owner_id=%s", clinic.id, owner.id)
    return clinic


# ════════════════════════════════════════════════════════════════
#  Profile settings
# ════════════════════════════════════════════════════════════════


def is_valid_time_zone(name):
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def normalize_times(times):
    """
    Validate "HH:MM" labels and return them deduplicated and sorted.
    Raises ValueError naming the first bad label.
    """
    cleaned = set()
    for label in times:
        label = str(label).strip()
        if not TIME_LABEL_RE.match(label):
            raise ValueError(f'Invalid time "{label}". Use HH:MM.')
        cleaned.add(label)
    return sorted(cleaned)


def normalize_working_days(days):
    cleaned = []
    for day in days:
        day = str(day).strip().lower()
        if day not in WEEKDAYS:
            raise ValueError(f'Invalid weekday "{day}".')
        if day not in cleaned:
            cleaned.append(day)
    return sorted(cleaned, key=WEEKDAYS.index)


def update_clinic_profile(clinic, **fields):
    for attr, value in fields.items():
        setattr(clinic, attr, value)
    clinic.save()
    logger.info(
        "[CLINIC] Profile updated clinic_id=%s fields=%s",
        clinic.id,
        sorted(fields),
    )
    return clinic


# ════════════════════════════════════════════════════════════════
#  WhatsApp templates
# ════════════════════════════════════════════════════════════════


def get_whatsapp_messages(clinic):
    return WhatsappMessage.objects.filter(clinic=clinic).first()


def upsert_whatsapp_messages(clinic, **templates):
    message, created = WhatsappMessage.objects.update_or_create(
        clinic=clinic, defaults=templates
    )
    logger.info(
        "[WHATSAPP] Templates %s for clinic_id=%s",
        "created" if created else "updated",
        clinic.id,
    )
    return message


# ════════════════════════════════════════════════════════════════
#  Reminders
# ════════════════════════════════════════════════════════════════


def list_reminders(clinic):
    return Reminder.objects.filter(clinic=clinic).order_by("-created_at")


def create_reminder(clinic, text, user=None):
    return Reminder.objects.create(clinic=clinic, text=text, created_by=user)


def delete_reminder(clinic, reminder_id):
    """Returns False when no such reminder exists in this clinic."""
    deleted, _ = Reminder.objects.filter(clinic=clinic, id=reminder_id).delete()
    return deleted > 0


# ════════════════════════════════════════════════════════════════
#  Reviews and public clinic info
# ════════════════════════════════════════════════════════════════


def create_review(clinic, name, rating, comment):
    review = Review.objects.create(
        clinic=clinic, name=name, rating=rating, comment=comment
    )
    logger.info(
        "[CLINIC] Review %s (rating=%s) for clinic_id=%s", review.id, rating, clinic.id
    )
    return review


def get_review_summary(clinic):
    """Reviews newest first plus their average rounded to one decimal."""
    reviews = Review.objects.filter(clinic=clinic).order_by("-created_at")
    stats = reviews.aggregate(avg=Avg("rating"), total=Count("id"))

    average = Decimal("0.0")
    if stats["avg"] is not None:
        average = Decimal(str(stats["avg"])).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )

    return {
        "reviews": list(reviews),
        "average_rating": average,
        "total_reviews": stats["total"],
    }


def get_info_schedule(clinic):
    """Everything the public clinic page needs besides the schedule grid."""
    from catalog.services import get_active_services

    summary = get_review_summary(clinic)
    return {
        "clinic": clinic,
        "services": list(get_active_services(clinic)),
        **summary,
    }
