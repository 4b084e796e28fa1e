"""
Tests for the finance app.

Covers:
- Period filters and date ranges
- Which appointments count as revenue
- Metrics, daily chart and services ranking
- API endpoints and the finance page
"""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from appointments.models import Appointment, AppointmentProduct, AppointmentService
from catalog.models import Product, Service
from clinics.models import Clinic
from clinics.services import create_clinic
from finance.services import (
    get_date_range,
    get_finance_report,
    get_metrics,
    get_revenue_chart,
    get_services_ranking,
    revenue_appointments,
)
from professionals.models import Professional

User = get_user_model()

# A wednesday afternoon in the clinic's time zone
NOW = datetime(2026, 3, 11, 14, 0, tzinfo=ZoneInfo("America/Sao_Paulo"))
TODAY = NOW.date()


# ═══════════════════════════════════════════════════════════════════════
#  Date ranges
# ═══════════════════════════════════════════════════════════════════════


class DateRangeTests(SimpleTestCase):
    def test_today(self):
        self.assertEqual(get_date_range("today", TODAY), (TODAY, TODAY))

    def test_week_runs_sunday_to_saturday(self):
        self.assertEqual(
            get_date_range("week", TODAY), (date(2026, 3, 8), date(2026, 3, 14))
        )
        # A sunday starts its own week
        sunday = date(2026, 3, 15)
        self.assertEqual(
            get_date_range("week", sunday), (sunday, date(2026, 3, 21))
        )

    def test_lookbacks(self):
        self.assertEqual(get_date_range("4_weeks", TODAY), (date(2026, 2, 11), TODAY))
        self.assertEqual(get_date_range("2_months", TODAY), (date(2026, 1, 11), TODAY))
        self.assertEqual(get_date_range("6_months", TODAY), (date(2025, 9, 11), TODAY))
        self.assertEqual(get_date_range("1_year", TODAY), (date(2025, 3, 11), TODAY))

    def test_custom(self):
        self.assertEqual(
            get_date_range("custom", TODAY, date(2026, 1, 1), date(2026, 1, 31)),
            (date(2026, 1, 1), date(2026, 1, 31)),
        )

    def test_custom_reversed_bounds_are_swapped(self):
        self.assertEqual(
            get_date_range("custom", TODAY, date(2026, 1, 31), date(2026, 1, 1)),
            (date(2026, 1, 1), date(2026, 1, 31)),
        )

    def test_custom_without_bounds_is_current_week(self):
        self.assertEqual(
            get_date_range("custom", TODAY, date(2026, 1, 1), None),
            (date(2026, 3, 8), date(2026, 3, 14)),
        )

    def test_unknown_filter_is_today(self):
        self.assertEqual(get_date_range("forever", TODAY), (TODAY, TODAY))


# ═══════════════════════════════════════════════════════════════════════
#  Revenue
# ═══════════════════════════════════════════════════════════════════════


class FinanceTestMixin:
    def setUp(self):
        self.owner = User.objects.create_user(
            phone="11987650301", password="pass1234", name="Owner"
        )
        self.clinic = create_clinic(self.owner, "Studio")

        self.haircut = Service.objects.create(
            clinic=self.clinic, name="Haircut",
            price=Decimal("45.00"), duration_minutes=30,
        )
        self.coloring = Service.objects.create(
            clinic=self.clinic, name="Coloring",
            price=Decimal("120.00"), duration_minutes=60,
        )
        self.shampoo = Product.objects.create(
            clinic=self.clinic, name="Shampoo", price=Decimal("30.00")
        )
        self.joana = Professional.objects.create(clinic=self.clinic, name="Joana")

    def _appointment(self, day, time, services=None, email="ana@example.com",
                     status=Appointment.Status.CONFIRMED,
                     payment_status=Appointment.PaymentStatus.PAID,
                     professional=None, clinic=None):
        services = services or [self.haircut]
        appointment = Appointment.objects.create(
            clinic=clinic or self.clinic,
            professional=professional,
            client_name="Ana",
            client_email=email,
            client_phone="11987654321",
            date=day,
            time=time,
            status=status,
            payment_status=payment_status,
            total_price=sum((s.price for s in services), Decimal("0")),
            total_duration=sum(s.duration_minutes for s in services),
        )
        for service in services:
            AppointmentService.objects.create(appointment=appointment, service=service)
        return appointment


class RevenueTests(FinanceTestMixin, TestCase):
    def test_only_confirmed_paid_and_past_appointments_count(self):
        yesterday = self._appointment(date(2026, 3, 10), "10:00")
        earlier_today = self._appointment(TODAY, "13:30")
        self._appointment(TODAY, "15:00")
        self._appointment(date(2026, 3, 9), "10:00", status=Appointment.Status.PENDING)
        self._appointment(date(2026, 3, 9), "11:00", status=Appointment.Status.CANCELLED)
        self._appointment(
            date(2026, 3, 9), "12:00", payment_status=Appointment.PaymentStatus.PENDING
        )
        self._appointment(
            date(2026, 3, 9), "13:00", payment_status=Appointment.PaymentStatus.OVERDUE
        )

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 14), now=NOW
        )
        self.assertEqual(
            [a.id for a in appointments], [yesterday.id, earlier_today.id]
        )

    def test_out_of_range_and_other_clinics_excluded(self):
        other_owner = User.objects.create_user(
            phone="11987650302", password="pass1234", name="Other"
        )
        other_clinic = create_clinic(other_owner, "Elsewhere")
        self._appointment(date(2026, 3, 10), "10:00", clinic=other_clinic)
        self._appointment(date(2026, 3, 1), "10:00")

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 14), now=NOW
        )
        self.assertEqual(appointments, [])

    def test_professional_filter(self):
        hers = self._appointment(date(2026, 3, 10), "10:00", professional=self.joana)
        self._appointment(date(2026, 3, 10), "11:00")

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 14),
            professional_id=self.joana.id, now=NOW,
        )
        self.assertEqual([a.id for a in appointments], [hers.id])

    def test_metrics_include_products(self):
        first = self._appointment(date(2026, 3, 9), "10:00", email="ana@example.com")
        AppointmentProduct.objects.create(
            appointment=first, product=self.shampoo, quantity=2,
            unit_price=Decimal("30.00"), total_price=Decimal("60.00"),
        )
        self._appointment(
            date(2026, 3, 10), "10:00", services=[self.coloring], email=" ANA@example.com"
        )
        self._appointment(date(2026, 3, 10), "11:00", email="bia@example.com")

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 14), now=NOW
        )
        metrics = get_metrics(appointments)

        self.assertEqual(metrics["gross_revenue"], Decimal("270.00"))
        self.assertEqual(metrics["completed_services"], 3)
        self.assertEqual(metrics["unique_clients"], 2)

    def test_chart_has_a_bucket_per_day(self):
        self._appointment(date(2026, 3, 9), "10:00")
        self._appointment(date(2026, 3, 9), "11:00", services=[self.coloring])

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 11), now=NOW
        )
        chart = get_revenue_chart(appointments, date(2026, 3, 8), date(2026, 3, 11))

        self.assertEqual(
            chart,
            [
                {"date": "08/03", "revenue": Decimal("0")},
                {"date": "09/03", "revenue": Decimal("165.00")},
                {"date": "10/03", "revenue": Decimal("0")},
                {"date": "11/03", "revenue": Decimal("0")},
            ],
        )

    def test_services_ranking(self):
        self._appointment(date(2026, 3, 9), "10:00", services=[self.coloring, self.haircut])
        self._appointment(date(2026, 3, 9), "11:00", services=[self.coloring])
        self._appointment(date(2026, 3, 10), "10:00", services=[self.coloring])

        appointments = revenue_appointments(
            self.clinic, date(2026, 3, 8), date(2026, 3, 14), now=NOW
        )
        ranking = get_services_ranking(appointments)

        self.assertEqual([e["name"] for e in ranking], ["Coloring", "Haircut"])
        self.assertEqual(ranking[0]["count"], 3)
        self.assertEqual(ranking[0]["revenue"], Decimal("360.00"))
        self.assertEqual(ranking[0]["color"], "hsl(0, 70%, 50%)")
        self.assertEqual(ranking[1]["color"], "hsl(137.5, 70%, 50%)")

    def test_report(self):
        self._appointment(date(2026, 3, 10), "10:00")
        report = get_finance_report(self.clinic, period="week", now=NOW)

        self.assertEqual(report["first_day"], date(2026, 3, 8))
        self.assertEqual(report["last_day"], date(2026, 3, 14))
        self.assertEqual(len(report["revenue_chart"]), 7)
        self.assertEqual(report["metrics"]["gross_revenue"], Decimal("45.00"))


# ═══════════════════════════════════════════════════════════════════════
#  API
# ═══════════════════════════════════════════════════════════════════════


class FinanceAPITests(FinanceTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

        patcher = patch.object(Clinic, "local_now", return_value=NOW)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_metrics_default_period_is_week(self):
        self._appointment(date(2026, 3, 10), "10:00")
        response = self.client.get(reverse("finance:api_metrics"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["period"], "week")
        self.assertEqual(response.data["first_day"], "2026-03-08")
        self.assertEqual(response.data["gross_revenue"], "45.00")
        self.assertEqual(response.data["completed_services"], 1)

    def test_custom_period(self):
        self._appointment(date(2026, 1, 15), "10:00")
        response = self.client.get(
            reverse("finance:api_metrics"),
            {"period": "custom", "custom_from": "2026-01-31", "custom_to": "2026-01-01"},
        )
        self.assertEqual(response.data["first_day"], "2026-01-01")
        self.assertEqual(response.data["completed_services"], 1)

    def test_unknown_period_rejected(self):
        response = self.client.get(reverse("finance:api_metrics"), {"period": "forever"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_revenue_chart(self):
        response = self.client.get(reverse("finance:api_revenue_chart"), {"period": "today"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [{"date": "11/03", "revenue": "0.00"}])

    def test_services_ranking(self):
        self._appointment(date(2026, 3, 10), "10:00")
        response = self.client.get(reverse("finance:api_services_ranking"))
        self.assertEqual(response.data[0]["name"], "Haircut")
        self.assertEqual(response.data[0]["count"], 1)

    def test_filter_professionals(self):
        Professional.objects.create(clinic=self.clinic, name="Inactive", is_active=False)
        response = self.client.get(reverse("finance:api_professionals"))
        self.assertEqual([p["name"] for p in response.data], ["Joana"])

    def test_finance_page(self):
        self.client.logout()
        self.client.force_login(self.owner)
        response = self.client.get(reverse("finance:finance"), {"period": "4_weeks"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["first_day"], date(2026, 2, 11))
