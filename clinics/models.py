from zoneinfo import ZoneInfo

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

# Indexed like date.weekday(): monday is 0
WEEKDAYS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


def default_clinic_times():
    """08:00 to 17:30 in steps of one slot."""
    step = settings.SLOT_MINUTES
    return [
        f"{minutes // 60:02d}:{minutes % 60:02d}"
        for minutes in range(8 * 60, 18 * 60, step)
    ]


def default_working_days():
    return list(settings.DEFAULT_WORKING_DAYS)


def default_time_zone():
    return settings.DEFAULT_CLINIC_TIME_ZONE


class Clinic(models.Model):
    """A tenant. Every service, professional and appointment belongs to one clinic."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="owned_clinics"
    )
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True)
    time_zone = models.CharField(max_length=64, default=default_time_zone)
    times = models.JSONField(
        default=default_clinic_times,
        help_text='Ordered "HH:MM" labels of the schedule grid.',
    )
    working_days = models.JSONField(
        default=default_working_days,
        help_text="Lower-case English weekday names.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    def works_on(self, day):
        return WEEKDAYS[day.weekday()] in (self.working_days or [])

    def local_now(self):
        return timezone.now().astimezone(ZoneInfo(self.time_zone))

    def local_today(self):
        return self.local_now().date()

    class Meta:
        ordering = ["-created_at"]


class ClinicStaff(models.Model):
    """Users other than the owner who work the clinic panel"""

    class Role(models.TextChoices):
        MANAGER = "MANAGER", "Manager"
        RECEPTIONIST = "RECEPTIONIST", "Receptionist"

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="staff_members"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="clinic_employments",
    )
    role = models.CharField(max_length=20, choices=Role.choices)
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="staff_added",
    )
    added_at = models.DateTimeField(auto_now_add=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.user.name} - {self.role} at {self.clinic.name}"

    class Meta:
        unique_together = ["clinic", "user"]
        verbose_name = "Clinic Staff"
        verbose_name_plural = "Clinic Staff"


class WhatsappMessage(models.Model):
    """Confirmation and cancellation templates sent to clients over WhatsApp"""

    clinic = models.OneToOneField(
        Clinic, on_delete=models.CASCADE, related_name="whatsapp_message"
    )
    confirmation_message = models.TextField(blank=True)
    cancellation_message = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"WhatsApp templates for {self.clinic.name}"


class Reminder(models.Model):
    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="reminders"
    )
    text = models.CharField(max_length=500)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reminders",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.text[:50]

    class Meta:
        ordering = ["-created_at"]


class Review(models.Model):
    """Public client review shown on the clinic page"""

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="reviews"
    )
    name = models.CharField(max_length=255)
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(5)]
    )
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} - {self.rating}/5 ({self.clinic.name})"

    class Meta:
        ordering = ["-created_at"]
