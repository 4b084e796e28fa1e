from django.db import models

from clinics.models import Clinic


class Professional(models.Model):
    """
    Someone who performs services at a clinic.

    available_times lists the clinic grid labels ("HH:MM") this person works;
    an empty list means they cannot be booked.
    """

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="professionals"
    )
    name = models.CharField(max_length=255)
    image_url = models.URLField(max_length=500, blank=True)
    specialty = models.CharField(max_length=255, blank=True)
    available_times = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.clinic.name})"

    def works_at(self, slot_times):
        available = set(self.available_times or [])
        return all(slot in available for slot in slot_times)
