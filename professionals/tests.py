"""
Tests for the slot-conflict engine and professional management.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from appointments.models import Appointment
from catalog.models import Service
from clinics.models import Clinic
from clinics.services import create_clinic
from professionals.models import Professional
from professionals.services import (
    get_available_professionals,
    get_available_times,
    get_blocked_times,
    is_slot_in_the_past,
    is_slot_sequence_available,
    is_today,
    required_slot_count,
)

User = get_user_model()

GRID = ["09:00", "09:30", "10:00", "10:30", "11:00"]


# ═══════════════════════════════════════════════════════════════════
#  Pure helpers
# ═══════════════════════════════════════════════════════════════════


class SlotHelperTests(SimpleTestCase):

    def test_slot_in_the_past(self):
        now = datetime(2026, 3, 2, 10, 15)
        self.assertTrue(is_slot_in_the_past("09:45", now))
        self.assertTrue(is_slot_in_the_past("10:15", now))
        self.assertTrue(is_slot_in_the_past("10:00", now))
        self.assertFalse(is_slot_in_the_past("10:30", now))
        self.assertFalse(is_slot_in_the_past("11:00", now))

    def test_is_today(self):
        now = datetime(2026, 3, 2, 23, 59)
        self.assertTrue(is_today(date(2026, 3, 2), now))
        self.assertFalse(is_today(date(2026, 3, 3), now))
        self.assertFalse(is_today(date(2025, 3, 2), now))

    def test_sequence_available(self):
        self.assertTrue(is_slot_sequence_available("09:00", 2, GRID, set()))
        self.assertTrue(is_slot_sequence_available("10:00", 3, GRID, set()))

    def test_sequence_start_not_on_grid(self):
        self.assertFalse(is_slot_sequence_available("09:15", 1, GRID, set()))

    def test_sequence_past_grid_end(self):
        self.assertFalse(is_slot_sequence_available("10:30", 3, GRID, set()))

    def test_sequence_hits_blocked_slot(self):
        self.assertFalse(is_slot_sequence_available("09:00", 3, GRID, {"10:00"}))
        self.assertTrue(is_slot_sequence_available("09:00", 2, GRID, {"10:00"}))

    def test_required_slot_count(self):
        self.assertEqual(required_slot_count(0), 1)
        self.assertEqual(required_slot_count(30), 1)
        self.assertEqual(required_slot_count(31), 2)
        self.assertEqual(required_slot_count(90), 3)


# ═══════════════════════════════════════════════════════════════════
#  Schedule queries
# ═══════════════════════════════════════════════════════════════════


class ScheduleTestMixin:

    def setUp(self):
        self.owner = User.objects.create_user(
            phone="11987650010", password="testpass123", name="Owner"
        )
        self.clinic = create_clinic(owner=self.owner, name="Grid Clinic")
        self.clinic.times = list(GRID)
        self.clinic.save()

        today = self.clinic.local_today()
        days_ahead = 0 - today.weekday()
        if days_ahead <= 0:
            days_ahead += 7
        self.monday = today + timedelta(days=days_ahead)
        self.sunday = self.monday + timedelta(days=6)

        self.ana = Professional.objects.create(
            clinic=self.clinic, name="Ana", available_times=list(GRID)
        )
        self.bia = Professional.objects.create(
            clinic=self.clinic, name="Bia", available_times=["09:00", "09:30"]
        )

    def _appointment(self, time, minutes=30, professional=None, **extra):
        return Appointment.objects.create(
            clinic=self.clinic,
            professional=professional,
            client_name="Client",
            client_email="client@example.com",
            client_phone="11987654321",
            date=extra.pop("day", self.monday),
            time=time,
            total_price=Decimal("50.00"),
            total_duration=minutes,
            **extra,
        )

    def _available(self, slots):
        return [s["time"] for s in slots if s["available"]]


class BlockedTimesTests(ScheduleTestMixin, TestCase):

    def test_closed_day_blocks_every_time(self):
        self.assertEqual(get_blocked_times(self.clinic, self.sunday), GRID)

    def test_appointment_blocks_its_run(self):
        self._appointment("09:30", minutes=60)
        self.assertEqual(
            get_blocked_times(self.clinic, self.monday), ["09:30", "10:00"]
        )

    def test_run_is_clipped_to_grid_end(self):
        self._appointment("11:00", minutes=90)
        self.assertEqual(get_blocked_times(self.clinic, self.monday), ["11:00"])

    def test_off_grid_appointment_blocks_nothing(self):
        self._appointment("12:00")
        self.assertEqual(get_blocked_times(self.clinic, self.monday), [])

    def test_cancelled_appointment_blocks_nothing(self):
        self._appointment("09:00", status=Appointment.Status.CANCELLED)
        self.assertEqual(get_blocked_times(self.clinic, self.monday), [])

    def test_clinic_wide_by_default(self):
        self._appointment("09:00", professional=self.ana)
        self._appointment("10:00")
        self.assertEqual(
            get_blocked_times(self.clinic, self.monday), ["09:00", "10:00"]
        )

    def test_scoped_to_professional(self):
        self._appointment("09:00", professional=self.ana)
        self._appointment("10:00", professional=self.bia)
        self.assertEqual(
            get_blocked_times(self.clinic, self.monday, self.ana), ["09:00"]
        )


class AvailableTimesTests(ScheduleTestMixin, TestCase):

    def test_free_day(self):
        slots = get_available_times(self.clinic, self.monday, 30)
        self.assertEqual([s["time"] for s in slots], GRID)
        self.assertEqual(self._available(slots), GRID)

    def test_long_service_needs_room_before_closing(self):
        slots = get_available_times(self.clinic, self.monday, 90)
        self.assertEqual(self._available(slots), ["09:00", "09:30", "10:00"])

    def test_booking_blocks_overlapping_starts(self):
        self._appointment("10:00")
        slots = get_available_times(self.clinic, self.monday, 60)
        self.assertEqual(self._available(slots), ["09:00", "10:30"])

    def test_closed_day_has_nothing_available(self):
        slots = get_available_times(self.clinic, self.sunday, 30)
        self.assertEqual(self._available(slots), [])

    def test_past_day_has_nothing_available(self):
        yesterday = self.clinic.local_today() - timedelta(days=1)
        slots = get_available_times(self.clinic, yesterday, 30)
        self.assertEqual(self._available(slots), [])

    def test_today_skips_passed_slots(self):
        now = datetime(
            self.monday.year, self.monday.month, self.monday.day, 10, 0,
            tzinfo=ZoneInfo(self.clinic.time_zone),
        )
        slots = get_available_times(self.clinic, self.monday, 30, now=now)
        self.assertEqual(self._available(slots), ["10:30", "11:00"])

    def test_today_uses_clinic_clock(self):
        now = datetime(
            self.monday.year, self.monday.month, self.monday.day, 10, 40,
            tzinfo=ZoneInfo(self.clinic.time_zone),
        )
        with patch.object(Clinic, "local_now", return_value=now):
            slots = get_available_times(self.clinic, self.monday, 30)
        self.assertEqual(self._available(slots), ["11:00"])

    def test_professional_scope(self):
        self._appointment("09:00", professional=self.ana)
        self._appointment("10:00")

        ana_slots = get_available_times(self.clinic, self.monday, 30, self.ana)
        self.assertEqual(
            self._available(ana_slots), ["09:30", "10:00", "10:30", "11:00"]
        )

        clinic_wide = get_available_times(self.clinic, self.monday, 30)
        self.assertEqual(self._available(clinic_wide), ["09:30", "10:30", "11:00"])


class AvailableProfessionalsTests(ScheduleTestMixin, TestCase):

    def test_both_free(self):
        names = [p.name for p in get_available_professionals(self.clinic, self.monday, "09:00", 60)]
        self.assertEqual(names, ["Ana", "Bia"])

    def test_must_work_whole_run(self):
        names = [p.name for p in get_available_professionals(self.clinic, self.monday, "09:30", 60)]
        self.assertEqual(names, ["Ana"])

    def test_own_booking_excludes_professional(self):
        self._appointment("09:30", professional=self.ana)
        names = [p.name for p in get_available_professionals(self.clinic, self.monday, "09:00", 60)]
        self.assertEqual(names, ["Bia"])

    def test_inactive_professional_excluded(self):
        self.bia.is_active = False
        self.bia.save()
        names = [p.name for p in get_available_professionals(self.clinic, self.monday, "09:00", 30)]
        self.assertEqual(names, ["Ana"])

    def test_empty_available_times_never_bookable(self):
        Professional.objects.create(clinic=self.clinic, name="Carla", available_times=[])
        names = [p.name for p in get_available_professionals(self.clinic, self.monday, "09:00", 30)]
        self.assertNotIn("Carla", names)


# ═══════════════════════════════════════════════════════════════════
#  API
# ═══════════════════════════════════════════════════════════════════


class ProfessionalAPITests(ScheduleTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)
        self.haircut = Service.objects.create(
            clinic=self.clinic, name="Haircut", price=Decimal("40.00"), duration_minutes=60
        )

    def test_list_is_newest_first(self):
        response = self.client.get(reverse("professionals:api_list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["name"] for p in response.data], ["Bia", "Ana"])

    def test_create_validates_times_against_grid(self):
        response = self.client.post(
            reverse("professionals:api_list"),
            {"name": "Dora", "available_times": ["09:00", "15:00"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("available_times", response.data)

    def test_create(self):
        response = self.client.post(
            reverse("professionals:api_list"),
            {"name": "Dora", "specialty": "Nails", "available_times": ["09:30", "09:00", "09:00"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["available_times"], ["09:00", "09:30"])

    def test_toggle(self):
        response = self.client.post(reverse("professionals:api_toggle", args=[self.ana.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_active"])

    def test_other_clinic_professional_is_not_found(self):
        other_owner = User.objects.create_user(
            phone="11987650011", password="testpass123", name="Other"
        )
        other_clinic = create_clinic(owner=other_owner, name="Other")
        stranger = Professional.objects.create(clinic=other_clinic, name="Eva")

        response = self.client.delete(reverse("professionals:api_detail", args=[stranger.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Professional.objects.filter(id=stranger.id).exists())

    def test_delete_keeps_appointments(self):
        appointment = self._appointment("09:00", professional=self.ana)
        response = self.client.delete(reverse("professionals:api_detail", args=[self.ana.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        appointment.refresh_from_db()
        self.assertIsNone(appointment.professional)

    def test_public_available_times(self):
        self._appointment("10:00")
        client = APIClient()
        response = client.get(
            reverse("professionals:api_available_times", args=[self.clinic.id]),
            {"date": self.monday.isoformat(), "service_ids": [self.haircut.id]},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_minutes"], 60)
        available = [t["time"] for t in response.data["times"] if t["available"]]
        self.assertEqual(available, ["09:00", "10:30"])

    def test_public_blocked_times(self):
        self._appointment("09:00", minutes=60, professional=self.ana)
        client = APIClient()
        response = client.get(
            reverse("professionals:api_blocked_times", args=[self.clinic.id]),
            {"date": self.monday.isoformat()},
        )
        self.assertEqual(response.data["blocked_times"], ["09:00", "09:30"])

    def test_public_time_apis_agree_without_professional(self):
        self._appointment("09:00", professional=self.ana)
        client = APIClient()
        blocked = client.get(
            reverse("professionals:api_blocked_times", args=[self.clinic.id]),
            {"date": self.monday.isoformat()},
        ).data["blocked_times"]
        times = client.get(
            reverse("professionals:api_available_times", args=[self.clinic.id]),
            {"date": self.monday.isoformat(), "service_ids": [self.haircut.id]},
        ).data["times"]
        available = [t["time"] for t in times if t["available"]]

        self.assertEqual(blocked, ["09:00"])
        self.assertEqual(available, ["09:30", "10:00", "10:30"])
        self.assertFalse(set(blocked) & set(available))

    def test_public_available_professionals_requires_time(self):
        client = APIClient()
        response = client.get(
            reverse("professionals:api_available_professionals", args=[self.clinic.id]),
            {"date": self.monday.isoformat()},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_public_available_professionals(self):
        client = APIClient()
        response = client.get(
            reverse("professionals:api_available_professionals", args=[self.clinic.id]),
            {"date": self.monday.isoformat(), "time": "09:30", "service_ids": [self.haircut.id]},
        )
        self.assertEqual([p["name"] for p in response.data["results"]], ["Ana"])
