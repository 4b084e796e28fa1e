"""
Tests for the clinics app.

Covers:
- Tenant isolation middleware and API permissions
- Profile settings, WhatsApp templates and reminders
- Public clinic info and reviews
- Panel pages (dashboard and settings)
"""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import Service
from clinics.models import (
    Clinic,
    ClinicStaff,
    Reminder,
    Review,
    WhatsappMessage,
    default_clinic_times,
)
from clinics.services import (
    create_clinic,
    get_review_summary,
    get_user_clinic,
    normalize_times,
    normalize_working_days,
)

User = get_user_model()


class ClinicTestMixin:
    def setUp(self):
        self.owner = User.objects.create_user(
            phone="11987650201", password="pass1234", name="Owner"
        )
        self.receptionist = User.objects.create_user(
            phone="11987650202", password="pass1234", name="Reception"
        )
        self.stranger = User.objects.create_user(
            phone="11987650203", password="pass1234", name="Stranger"
        )
        self.clinic = create_clinic(self.owner, "Studio", phone="1132654321")
        ClinicStaff.objects.create(
            clinic=self.clinic,
            user=self.receptionist,
            role=ClinicStaff.Role.RECEPTIONIST,
            added_by=self.owner,
        )

        self.api = APIClient()


# ═══════════════════════════════════════════════════════════════════════
#  Tenant resolution
# ═══════════════════════════════════════════════════════════════════════


class TenantIsolationTests(ClinicTestMixin, TestCase):
    def test_owner_and_staff_resolve_clinic(self):
        self.assertEqual(get_user_clinic(self.owner), self.clinic)
        self.assertEqual(get_user_clinic(self.receptionist), self.clinic)
        self.assertIsNone(get_user_clinic(self.stranger))

    def test_inactive_staff_has_no_clinic(self):
        ClinicStaff.objects.filter(user=self.receptionist).update(is_active=False)
        self.assertIsNone(get_user_clinic(self.receptionist))

    def test_user_without_clinic_gets_403_on_panel(self):
        self.client.force_login(self.stranger)
        response = self.client.get(reverse("clinics:dashboard"))
        self.assertEqual(response.status_code, 403)

    def test_user_without_clinic_can_open_public_pages(self):
        self.client.force_login(self.stranger)
        response = self.client.get(
            reverse("clinics:api_public_info", args=[self.clinic.id])
        )
        self.assertEqual(response.status_code, 200)

    def test_api_denies_user_without_clinic(self):
        self.api.force_authenticate(user=self.stranger)
        response = self.api.get(reverse("clinics:api_profile"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


# ═══════════════════════════════════════════════════════════════════════
#  Profile settings
# ═══════════════════════════════════════════════════════════════════════


class ClinicProfileTests(ClinicTestMixin, TestCase):
    def test_new_clinic_defaults(self):
        self.assertEqual(self.clinic.time_zone, "America/Sao_Paulo")
        self.assertEqual(self.clinic.times[0], "08:00")
        self.assertEqual(self.clinic.times[-1], "17:30")
        self.assertEqual(len(self.clinic.times), len(default_clinic_times()))
        self.assertEqual(
            self.clinic.working_days,
            ["monday", "tuesday", "wednesday", "thursday", "friday"],
        )

    def test_normalize_times_sorts_and_dedupes(self):
        self.assertEqual(
            normalize_times(["10:00", "09:00", " 09:00 "]), ["09:00", "10:00"]
        )
        with self.assertRaises(ValueError):
            normalize_times(["9:00"])
        with self.assertRaises(ValueError):
            normalize_times(["24:00"])

    def test_normalize_working_days(self):
        self.assertEqual(
            normalize_working_days(["Friday", "monday", "friday"]),
            ["monday", "friday"],
        )
        with self.assertRaises(ValueError):
            normalize_working_days(["funday"])

    def test_get_profile(self):
        self.api.force_authenticate(user=self.receptionist)
        response = self.api.get(reverse("clinics:api_profile"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], self.clinic.id)
        self.assertEqual(response.data["name"], "Studio")

    def test_owner_updates_schedule(self):
        self.api.force_authenticate(user=self.owner)
        response = self.api.patch(
            reverse("clinics:api_profile"),
            {
                "times": ["10:00", "09:00"],
                "working_days": ["saturday", "monday"],
                "time_zone": "Europe/Lisbon",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.clinic.refresh_from_db()
        self.assertEqual(self.clinic.times, ["09:00", "10:00"])
        self.assertEqual(self.clinic.working_days, ["monday", "saturday"])
        self.assertEqual(self.clinic.time_zone, "Europe/Lisbon")

    def test_invalid_values_rejected(self):
        self.api.force_authenticate(user=self.owner)
        for payload in (
            {"time_zone": "Mars/Olympus"},
            {"times": ["9h"]},
            {"working_days": ["someday"]},
            {"name": "X"},
        ):
            response = self.api.patch(
                reverse("clinics:api_profile"), payload, format="json"
            )
            self.assertEqual(
                response.status_code, status.HTTP_400_BAD_REQUEST, payload
            )

    def test_staff_cannot_update_profile(self):
        self.api.force_authenticate(user=self.receptionist)
        response = self.api.patch(
            reverse("clinics:api_profile"), {"name": "Renamed"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.clinic.refresh_from_db()
        self.assertEqual(self.clinic.name, "Studio")


# ═══════════════════════════════════════════════════════════════════════
#  WhatsApp templates and reminders
# ═══════════════════════════════════════════════════════════════════════


class WhatsappMessageAPITests(ClinicTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.api.force_authenticate(user=self.owner)
        self.url = reverse("clinics:api_whatsapp_messages")

    def test_not_found_until_saved(self):
        response = self.api.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "NOT_FOUND")

    def test_put_creates_then_replaces(self):
        response = self.api.put(
            self.url,
            {
                "confirmation_message": "Hi [Nome-cliente], see you at [hora]",
                "cancellation_message": "Cancelled",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.api.put(
            self.url,
            {"confirmation_message": "New text", "cancellation_message": ""},
            format="json",
        )

        self.assertEqual(WhatsappMessage.objects.filter(clinic=self.clinic).count(), 1)
        response = self.api.get(self.url)
        self.assertEqual(response.data["confirmation_message"], "New text")
        self.assertEqual(response.data["cancellation_message"], "")


class ReminderAPITests(ClinicTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.api.force_authenticate(user=self.receptionist)

    def test_create_and_list(self):
        response = self.api.post(
            reverse("clinics:api_reminders"), {"text": "  Buy towels "}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["text"], "Buy towels")
        self.assertEqual(response.data["created_by_name"], "Reception")

        response = self.api.get(reverse("clinics:api_reminders"))
        self.assertEqual(len(response.data), 1)

    def test_blank_text_rejected(self):
        response = self.api.post(
            reverse("clinics:api_reminders"), {"text": "   "}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_is_scoped_to_clinic(self):
        other_owner = User.objects.create_user(
            phone="11987650204", password="pass1234", name="Other"
        )
        other_clinic = create_clinic(other_owner, "Elsewhere")
        foreign = Reminder.objects.create(clinic=other_clinic, text="Theirs")
        own = Reminder.objects.create(clinic=self.clinic, text="Ours")

        response = self.api.delete(
            reverse("clinics:api_reminder_delete", args=[foreign.id])
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Reminder.objects.filter(id=foreign.id).exists())

        response = self.api.delete(reverse("clinics:api_reminder_delete", args=[own.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Reminder.objects.filter(id=own.id).exists())


# ═══════════════════════════════════════════════════════════════════════
#  Public info and reviews
# ═══════════════════════════════════════════════════════════════════════


class PublicClinicAPITests(ClinicTestMixin, TestCase):
    def test_review_summary_average(self):
        for rating in (5, 4, 4):
            Review.objects.create(
                clinic=self.clinic, name="Ana", rating=rating, comment="Very good visit"
            )
        summary = get_review_summary(self.clinic)
        self.assertEqual(summary["total_reviews"], 3)
        self.assertEqual(summary["average_rating"], Decimal("4.3"))

    def test_summary_without_reviews(self):
        summary = get_review_summary(self.clinic)
        self.assertEqual(summary["average_rating"], Decimal("0.0"))
        self.assertEqual(summary["reviews"], [])

    def test_post_review(self):
        response = self.api.post(
            reverse("clinics:api_public_reviews", args=[self.clinic.id]),
            {"name": "Ana", "rating": 5, "comment": "Great service, very kind."},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.api.get(
            reverse("clinics:api_public_reviews", args=[self.clinic.id])
        )
        self.assertEqual(response.data["total_reviews"], 1)
        self.assertEqual(response.data["average_rating"], 5.0)

    def test_invalid_reviews_rejected(self):
        url = reverse("clinics:api_public_reviews", args=[self.clinic.id])
        for payload in (
            {"name": "Ana", "rating": 6, "comment": "Great service, very kind."},
            {"name": "A", "rating": 4, "comment": "Great service, very kind."},
            {"name": "Ana", "rating": 4, "comment": "Too short"},
            {"name": "Ana", "rating": 4},
        ):
            response = self.api.post(url, payload, format="json")
            self.assertEqual(
                response.status_code, status.HTTP_400_BAD_REQUEST, payload
            )
        self.assertFalse(Review.objects.exists())

    def test_public_info_lists_active_services(self):
        Service.objects.create(
            clinic=self.clinic, name="Haircut",
            price=Decimal("45.00"), duration_minutes=30,
        )
        Service.objects.create(
            clinic=self.clinic, name="Retired",
            price=Decimal("45.00"), duration_minutes=30, is_active=False,
        )

        response = self.api.get(reverse("clinics:api_public_info", args=[self.clinic.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["clinic"]["name"], "Studio")
        self.assertEqual([s["name"] for s in response.data["services"]], ["Haircut"])
        self.assertEqual(response.data["total_reviews"], 0)

    def test_inactive_clinic_is_404(self):
        Clinic.objects.filter(id=self.clinic.id).update(is_active=False)
        response = self.api.get(reverse("clinics:api_public_info", args=[self.clinic.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


# ═══════════════════════════════════════════════════════════════════════
#  Panel pages
# ═══════════════════════════════════════════════════════════════════════


class PanelPageTests(ClinicTestMixin, TestCase):
    def test_dashboard_renders(self):
        self.client.force_login(self.owner)
        response = self.client.get(reverse("clinics:dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["clinic"], self.clinic)
        self.assertEqual(response.context["pending_count"], 0)

    def test_dashboard_requires_login(self):
        response = self.client.get(reverse("clinics:dashboard"))
        self.assertEqual(response.status_code, 302)

    def test_add_and_remove_reminder(self):
        self.client.force_login(self.receptionist)
        response = self.client.post(reverse("clinics:add_reminder"), {"text": "Call Ana"})
        self.assertRedirects(response, reverse("clinics:dashboard"))

        reminder = Reminder.objects.get(clinic=self.clinic)
        self.client.post(reverse("clinics:remove_reminder", args=[reminder.id]))
        self.assertFalse(Reminder.objects.exists())

    def test_settings_post_by_owner(self):
        self.client.force_login(self.owner)
        response = self.client.post(
            reverse("clinics:settings"),
            {
                "name": "Studio Two",
                "time_zone": "America/Sao_Paulo",
                "times": "09:00, 09:30 10:00",
                "working_days": ["monday", "tuesday"],
                "is_active": "on",
                "confirmation_message": "Confirmed [data]",
                "cancellation_message": "",
            },
        )
        self.assertRedirects(response, reverse("clinics:settings"))

        self.clinic.refresh_from_db()
        self.assertEqual(self.clinic.name, "Studio Two")
        self.assertEqual(self.clinic.times, ["09:00", "09:30", "10:00"])
        self.assertEqual(self.clinic.working_days, ["monday", "tuesday"])
        self.assertEqual(
            WhatsappMessage.objects.get(clinic=self.clinic).confirmation_message,
            "Confirmed [data]",
        )

    def test_settings_post_by_staff_forbidden(self):
        self.client.force_login(self.receptionist)
        response = self.client.post(
            reverse("clinics:settings"),
            {"name": "Hijacked", "time_zone": "America/Sao_Paulo"},
        )
        self.assertEqual(response.status_code, 403)
