"""
Tests for the appointments app.

Covers:
- Booking service (happy path, validations, multi-slot conflicts)
- Panel actions (confirm / cancel with WhatsApp messages, payments, products)
- Message rendering helpers
- API endpoints (public booking, day view, confirm, payment)
"""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch
from urllib.parse import unquote
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from appointments.messaging import (
    format_currency,
    render_template,
    whatsapp_url,
)
from appointments.models import Appointment, AppointmentProduct
from appointments.services import (
    AppointmentActionError,
    AppointmentNotFoundError,
    BookingError,
    ClosedDayError,
    InvalidSlotError,
    PastDateError,
    PaymentError,
    SlotUnavailableError,
    add_product,
    book_appointment,
    cancel_appointment,
    cancel_multiple_appointments,
    confirm_appointment,
    get_day_appointments,
    mark_overdue,
    mark_paid,
    remove_product,
)
from catalog.models import Product, Service
from clinics.models import Clinic, WhatsappMessage
from clinics.services import create_clinic
from professionals.models import Professional

User = get_user_model()


class BookingTestMixin:
    """Shared setup: one clinic with two services, a product and a professional."""

    def setUp(self):
        self.owner = User.objects.create_user(
            phone="11987650001",
            password="testpass123",
            name="Owner Ana",
        )
        self.other_owner = User.objects.create_user(
            phone="11987650002",
            password="testpass123",
            name="Owner Bruno",
        )

        # Default grid: 08:00..17:30 every 30 minutes, monday to friday
        self.clinic = create_clinic(
            owner=self.owner,
            name="Test Clinic",
            address="Rua A, 100",
            phone="1133334444",
        )
        self.other_clinic = create_clinic(owner=self.other_owner, name="Other Clinic")

        today = self.clinic.local_today()
        days_ahead = 0 - today.weekday()  # Monday is 0
        if days_ahead <= 0:
            days_ahead += 7
        self.next_monday = today + timedelta(days=days_ahead)
        self.next_sunday = self.next_monday + timedelta(days=6)

        self.haircut = Service.objects.create(
            clinic=self.clinic,
            name="Haircut",
            price=Decimal("45.00"),
            duration_minutes=30,
        )
        self.coloring = Service.objects.create(
            clinic=self.clinic,
            name="Coloring",
            price=Decimal("120.00"),
            duration_minutes=60,
        )
        self.foreign_service = Service.objects.create(
            clinic=self.other_clinic,
            name="Massage",
            price=Decimal("90.00"),
            duration_minutes=30,
        )

        self.professional = Professional.objects.create(
            clinic=self.clinic,
            name="Joana",
            specialty="Hair",
            available_times=["09:00", "09:30", "10:00", "10:30"],
        )

        self.shampoo = Product.objects.create(
            clinic=self.clinic, name="Shampoo", price=Decimal("30.00")
        )

    def _book(self, **overrides):
        kwargs = {
            "clinic_id": self.clinic.id,
            "service_ids": [self.haircut.id],
            "appointment_date": self.next_monday,
            "appointment_time": "09:00",
            "client_name": "Maria Souza",
            "client_email": "maria@example.com",
            "client_phone": "(11) 98765-4321",
        }
        kwargs.update(overrides)
        return book_appointment(**kwargs)

    def _set_templates(self, confirmation="", cancellation=""):
        return WhatsappMessage.objects.create(
            clinic=self.clinic,
            confirmation_message=confirmation,
            cancellation_message=cancellation,
        )

    def _local(self, day, hour, minute=0):
        return datetime(
            day.year, day.month, day.day, hour, minute,
            tzinfo=ZoneInfo(self.clinic.time_zone),
        )


# ═══════════════════════════════════════════════════════════════════
#  Service Layer Tests
# ═══════════════════════════════════════════════════════════════════


class BookingServiceTests(BookingTestMixin, TestCase):
    """Tests for the book_appointment service function."""

    def test_successful_booking(self):
        """Happy path: client books two services on a free slot."""
        appointment = self._book(service_ids=[self.haircut.id, self.coloring.id])

        self.assertIsNotNone(appointment.id)
        self.assertEqual(appointment.clinic, self.clinic)
        self.assertIsNone(appointment.professional)
        self.assertEqual(appointment.date, self.next_monday)
        self.assertEqual(appointment.time, "09:00")
        self.assertEqual(appointment.status, Appointment.Status.PENDING)
        self.assertEqual(appointment.total_price, Decimal("165.00"))
        self.assertEqual(appointment.total_duration, 90)
        self.assertEqual(appointment.service_lines.count(), 2)
        self.assertEqual(appointment.payment_status, Appointment.PaymentStatus.PENDING)

    def test_booking_strips_client_fields(self):
        appointment = self._book(client_name="  Maria  ", client_email=" maria@example.com ")
        self.assertEqual(appointment.client_name, "Maria")
        self.assertEqual(appointment.client_email, "maria@example.com")

    def test_past_date_raises_error(self):
        """Booking a past date should raise PastDateError."""
        yesterday = self.clinic.local_today() - timedelta(days=1)
        with self.assertRaises(PastDateError):
            self._book(appointment_date=yesterday)

    def test_closed_day_raises_error(self):
        """Sunday is not a default working day."""
        with self.assertRaises(ClosedDayError):
            self._book(appointment_date=self.next_sunday)

    def test_off_grid_time_raises_error(self):
        """A time that is not a clinic label should fail."""
        with self.assertRaises(InvalidSlotError):
            self._book(appointment_time="09:15")

    def test_run_past_closing_raises_error(self):
        """A 60 minute booking at the last label does not fit."""
        with self.assertRaises(InvalidSlotError):
            self._book(service_ids=[self.coloring.id], appointment_time="17:30")

    def test_no_services_raises_error(self):
        with self.assertRaises(BookingError) as ctx:
            self._book(service_ids=[])
        self.assertEqual(ctx.exception.code, "no_services")

    def test_service_of_another_clinic_raises_error(self):
        with self.assertRaises(BookingError) as ctx:
            self._book(service_ids=[self.haircut.id, self.foreign_service.id])
        self.assertEqual(ctx.exception.code, "invalid_services")

    def test_inactive_service_raises_error(self):
        self.haircut.is_active = False
        self.haircut.save()
        with self.assertRaises(BookingError) as ctx:
            self._book()
        self.assertEqual(ctx.exception.code, "invalid_services")

    def test_inactive_clinic_raises_error(self):
        self.clinic.is_active = False
        self.clinic.save()
        with self.assertRaises(BookingError) as ctx:
            self._book()
        self.assertEqual(ctx.exception.code, "invalid_clinic")

    def test_non_existent_clinic_raises_error(self):
        with self.assertRaises(BookingError):
            self._book(clinic_id=99999)

    def test_slot_already_booked_raises_error(self):
        """Booking an already-taken slot should raise SlotUnavailableError."""
        self._book()
        with self.assertRaises(SlotUnavailableError):
            self._book(client_name="Other Client")

    def test_long_booking_blocks_following_slots(self):
        """A 60 minute booking at 09:00 also occupies 09:30."""
        self._book(service_ids=[self.coloring.id])

        with self.assertRaises(SlotUnavailableError):
            self._book(appointment_time="09:30")

        appointment = self._book(appointment_time="10:00")
        self.assertEqual(appointment.time, "10:00")

    def test_booking_cannot_overlap_a_later_booking(self):
        """A 60 minute booking at 09:30 overlaps one already at 10:00."""
        self._book(appointment_time="10:00")
        with self.assertRaises(SlotUnavailableError):
            self._book(service_ids=[self.coloring.id], appointment_time="09:30")

    def test_cancelled_slot_can_be_rebooked(self):
        """A cancelled appointment's slot should become available again."""
        appointment = self._book()
        appointment.status = Appointment.Status.CANCELLED
        appointment.save()

        rebooked = self._book(client_name="Second Client")
        self.assertNotEqual(rebooked.id, appointment.id)

    def test_booking_with_professional(self):
        appointment = self._book(professional_id=self.professional.id)
        self.assertEqual(appointment.professional, self.professional)

    def test_professional_not_working_at_time_raises_error(self):
        with self.assertRaises(BookingError) as ctx:
            self._book(professional_id=self.professional.id, appointment_time="14:00")
        self.assertEqual(ctx.exception.code, "professional_unavailable")

    def test_professional_must_work_the_whole_run(self):
        """10:30 is the professional's last label; 60 minutes would need 11:00."""
        with self.assertRaises(BookingError) as ctx:
            self._book(
                professional_id=self.professional.id,
                service_ids=[self.coloring.id],
                appointment_time="10:30",
            )
        self.assertEqual(ctx.exception.code, "professional_unavailable")

    def test_inactive_professional_raises_error(self):
        self.professional.is_active = False
        self.professional.save()
        with self.assertRaises(BookingError) as ctx:
            self._book(professional_id=self.professional.id)
        self.assertEqual(ctx.exception.code, "invalid_professional")

    def test_professional_bookings_block_the_clinic_grid(self):
        """Without a professional every appointment of the clinic counts."""
        self._book(professional_id=self.professional.id)

        with self.assertRaises(SlotUnavailableError):
            self._book(client_name="Walk-in")

        walk_in = self._book(client_name="Walk-in", appointment_time="09:30")
        self.assertIsNone(walk_in.professional)

        with self.assertRaises(SlotUnavailableError):
            self._book(professional_id=self.professional.id, client_name="Third")

    def test_blank_client_details_raise_error(self):
        for overrides in (
            {"client_name": "   "},
            {"client_phone": ""},
            {"client_email": "not-an-email"},
        ):
            with self.subTest(**overrides):
                with self.assertRaises(BookingError) as ctx:
                    self._book(**overrides)
                self.assertEqual(ctx.exception.code, "invalid_client")
        self.assertFalse(Appointment.objects.exists())

    def test_passed_slot_today_raises_error(self):
        now = self._local(self.next_monday, 12, 0)
        with patch.object(Clinic, "local_now", return_value=now):
            with self.assertRaises(PastDateError):
                self._book(appointment_time="09:00")

            appointment = self._book(appointment_time="13:00")
        self.assertEqual(appointment.time, "13:00")

    def test_booking_email_is_sent_on_commit(self):
        with patch(
            "appointments.services.booking_service.send_booking_email"
        ) as mock_send:
            with self.captureOnCommitCallbacks(execute=True):
                appointment = self._book()

        mock_send.assert_called_once_with(appointment.id)


class ConfirmCancelServiceTests(BookingTestMixin, TestCase):
    """Confirmation and cancellation with WhatsApp messages."""

    def setUp(self):
        super().setUp()
        self.appointment = self._book(
            service_ids=[self.haircut.id, self.coloring.id],
            professional_id=self.professional.id,
        )

    def test_confirm_without_template_raises_error(self):
        with self.assertRaises(AppointmentActionError) as ctx:
            confirm_appointment(self.clinic, self.appointment.id)
        self.assertEqual(ctx.exception.code, "no_template")

        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.Status.PENDING)

    def test_confirm_renders_template(self):
        self._set_templates(
            confirmation="Hi [Nome-cliente], [servico] with [profissional] on [data] at [hora]: [valor]"
        )

        result = confirm_appointment(self.clinic, self.appointment.id)

        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.Status.CONFIRMED)
        expected = (
            f"Hi Maria Souza, Haircut, Coloring with Joana on "
            f"{self.next_monday.strftime('%d/%m/%Y')} at 09:00: R$ 165,00"
        )
        self.assertEqual(result["message"], expected)
        self.assertTrue(result["whatsapp_url"].startswith("https://wa.me/5511987654321?text="))
        self.assertEqual(unquote(result["whatsapp_url"].split("?text=")[1]), expected)

    def test_confirm_cancelled_appointment_raises_error(self):
        self._set_templates(confirmation="Confirmed")
        cancel_appointment(self.clinic, self.appointment.id)

        with self.assertRaises(AppointmentActionError) as ctx:
            confirm_appointment(self.clinic, self.appointment.id)
        self.assertEqual(ctx.exception.code, "cancelled")

    def test_confirm_other_clinic_appointment_is_not_found(self):
        with self.assertRaises(AppointmentNotFoundError):
            confirm_appointment(self.other_clinic, self.appointment.id)

    def test_cancel_without_template_returns_no_link(self):
        result = cancel_appointment(self.clinic, self.appointment.id)

        self.assertEqual(result["appointment"].status, Appointment.Status.CANCELLED)
        self.assertIsNone(result["message"])
        self.assertIsNone(result["whatsapp_url"])

    def test_cancel_with_template(self):
        self._set_templates(cancellation="Sorry [Nome-cliente], [data] [hora] was cancelled")
        result = cancel_appointment(self.clinic, self.appointment.id)
        self.assertIn("Sorry Maria Souza", result["message"])
        self.assertIn("09:00 was cancelled", result["message"])

    def test_cancel_multiple_joins_services_and_sums_values(self):
        self._set_templates(cancellation="[servico] / [valor]")
        second = self._book(appointment_time="14:00")

        result = cancel_multiple_appointments(
            self.clinic, [self.appointment.id, second.id, 99999]
        )

        self.assertEqual(len(result["appointments"]), 2)
        self.assertEqual(result["message"], "Haircut, Coloring, Haircut / R$ 210,00")
        self.assertEqual(
            Appointment.objects.filter(status=Appointment.Status.CANCELLED).count(), 2
        )

    def test_cancel_multiple_ignores_other_clinics(self):
        with self.assertRaises(AppointmentNotFoundError):
            cancel_multiple_appointments(self.other_clinic, [self.appointment.id])

        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.Status.PENDING)

    def test_day_appointments_are_in_grid_order(self):
        later = self._book(appointment_time="15:00")
        earlier = self._book(appointment_time="08:00")

        day = get_day_appointments(self.clinic, self.next_monday)
        self.assertEqual([a.id for a in day], [earlier.id, self.appointment.id, later.id])


class PaymentServiceTests(BookingTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.appointment = self._book()
        self._set_templates(confirmation="ok")

    def test_mark_paid_requires_confirmed(self):
        with self.assertRaises(PaymentError) as ctx:
            mark_paid(self.clinic, self.appointment.id, "PIX")
        self.assertEqual(ctx.exception.code, "not_confirmed")

    def test_mark_paid(self):
        confirm_appointment(self.clinic, self.appointment.id)

        appointment = mark_paid(self.clinic, self.appointment.id, "PIX")

        self.assertEqual(appointment.payment_status, Appointment.PaymentStatus.PAID)
        self.assertEqual(appointment.payment_method, "PIX")
        self.assertIsNotNone(appointment.paid_at)

    def test_mark_paid_invalid_method(self):
        confirm_appointment(self.clinic, self.appointment.id)
        with self.assertRaises(PaymentError) as ctx:
            mark_paid(self.clinic, self.appointment.id, "BITCOIN")
        self.assertEqual(ctx.exception.code, "invalid_method")

    def test_mark_overdue_refused_when_paid(self):
        confirm_appointment(self.clinic, self.appointment.id)
        mark_paid(self.clinic, self.appointment.id, "CASH")

        with self.assertRaises(PaymentError) as ctx:
            mark_overdue(self.clinic, self.appointment.id)
        self.assertEqual(ctx.exception.code, "already_paid")

    def test_mark_overdue(self):
        confirm_appointment(self.clinic, self.appointment.id)
        appointment = mark_overdue(self.clinic, self.appointment.id)
        self.assertEqual(appointment.payment_status, Appointment.PaymentStatus.OVERDUE)


class AppointmentProductTests(BookingTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.appointment = self._book()

    def test_add_product(self):
        line = add_product(self.clinic, self.appointment.id, self.shampoo.id, 2)

        self.assertEqual(line.quantity, 2)
        self.assertEqual(line.unit_price, Decimal("30.00"))
        self.assertEqual(line.total_price, Decimal("60.00"))
        self.assertEqual(self.appointment.products_total, Decimal("60.00"))

    def test_adding_same_product_replaces_quantity(self):
        add_product(self.clinic, self.appointment.id, self.shampoo.id, 2)
        line = add_product(self.clinic, self.appointment.id, self.shampoo.id, 3)

        self.assertEqual(AppointmentProduct.objects.count(), 1)
        self.assertEqual(line.quantity, 3)
        self.assertEqual(line.total_price, Decimal("90.00"))

    def test_invalid_quantity(self):
        with self.assertRaises(AppointmentActionError) as ctx:
            add_product(self.clinic, self.appointment.id, self.shampoo.id, 0)
        self.assertEqual(ctx.exception.code, "invalid_quantity")

    def test_inactive_product_is_not_found(self):
        self.shampoo.is_active = False
        self.shampoo.save()
        with self.assertRaises(AppointmentActionError) as ctx:
            add_product(self.clinic, self.appointment.id, self.shampoo.id, 1)
        self.assertEqual(ctx.exception.code, "not_found")

    def test_remove_product(self):
        line = add_product(self.clinic, self.appointment.id, self.shampoo.id, 1)
        remove_product(self.clinic, line.id)
        self.assertFalse(AppointmentProduct.objects.exists())

    def test_remove_product_of_other_clinic(self):
        line = add_product(self.clinic, self.appointment.id, self.shampoo.id, 1)
        with self.assertRaises(AppointmentActionError):
            remove_product(self.other_clinic, line.id)
        self.assertTrue(AppointmentProduct.objects.filter(id=line.id).exists())


# ═══════════════════════════════════════════════════════════════════
#  Message Rendering Tests
# ═══════════════════════════════════════════════════════════════════


class MessagingTests(TestCase):

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal("1234.5")), "R$ 1.234,50")
        self.assertEqual(format_currency(Decimal("0")), "R$ 0,00")
        self.assertEqual(format_currency(Decimal("1000000")), "R$ 1.000.000,00")

    def test_missing_professional_is_not_informed(self):
        message = render_template(
            "[profissional]",
            client_name="Ana",
            services="Haircut",
            professional_name=None,
            day=datetime(2026, 3, 2).date(),
            time="09:00",
            value=Decimal("10"),
        )
        self.assertEqual(message, "Not informed")

    def test_placeholders_are_replaced_everywhere(self):
        message = render_template(
            "[Nome-cliente] [Nome-cliente] [data]",
            client_name="Ana",
            services="",
            professional_name="Joana",
            day=datetime(2026, 3, 2).date(),
            time="09:00",
            value=Decimal("10"),
        )
        self.assertEqual(message, "Ana Ana 02/03/2026")

    def test_whatsapp_url_adds_country_code(self):
        self.assertEqual(
            whatsapp_url("(11) 98765-4321", "Olá mundo"),
            "https://wa.me/5511987654321?text=Ol%C3%A1%20mundo",
        )
        self.assertTrue(whatsapp_url("5511987654321", "x").startswith("https://wa.me/5511987654321?"))


# ═══════════════════════════════════════════════════════════════════
#  API Endpoint Tests
# ═══════════════════════════════════════════════════════════════════


class BookAppointmentAPITests(BookingTestMixin, TestCase):
    """Tests for POST /appointments/api/public/book/ endpoint."""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.url = reverse("appointments:api_book")

    def _book_payload(self, **overrides):
        """Helper to generate a valid booking payload."""
        payload = {
            "clinic_id": self.clinic.id,
            "service_ids": [self.haircut.id],
            "date": self.next_monday.isoformat(),
            "time": "09:00",
            "name": "Maria Souza",
            "email": "maria@example.com",
            "phone": "(11) 98765-4321",
        }
        payload.update(overrides)
        return payload

    def test_successful_api_booking(self):
        """Anonymous POST with valid data returns 201 and appointment details."""
        response = self.client.post(self.url, self._book_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "PENDING")
        self.assertEqual(response.data["time"], "09:00")
        self.assertEqual(response.data["services"][0]["name"], "Haircut")
        self.assertIsNone(response.data["professional_name"])

    def test_missing_fields_returns_400(self):
        response = self.client.post(self.url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_short_phone_returns_400(self):
        response = self.client.post(
            self.url, self._book_payload(phone="12345"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", response.data)

    def test_slot_unavailable_returns_409(self):
        self.client.post(self.url, self._book_payload(), format="json")
        response = self.client.post(
            self.url, self._book_payload(name="Second Client"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "slot_unavailable")

    def test_closed_day_returns_403(self):
        response = self.client.post(
            self.url,
            self._book_payload(date=self.next_sunday.isoformat()),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "closed_day")

    def test_past_date_returns_403(self):
        yesterday = self.clinic.local_today() - timedelta(days=1)
        response = self.client.post(
            self.url,
            self._book_payload(date=yesterday.isoformat()),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "past_date")

    def test_invalid_slot_returns_400(self):
        response = self.client.post(
            self.url, self._book_payload(time="09:15"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_slot")


class PanelAppointmentAPITests(BookingTestMixin, TestCase):
    """Clinic panel endpoints are scoped to the caller's clinic."""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.appointment = self._book()

    def test_day_view_requires_authentication(self):
        response = self.client.get(reverse("appointments:api_day"))
        self.assertIn(response.status_code, [
            status.HTTP_401_UNAUTHORIZED,
            status.HTTP_403_FORBIDDEN,
        ])

    def test_day_view(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(
            reverse("appointments:api_day"), {"date": self.next_monday.isoformat()}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["appointments"]), 1)

    def test_day_view_is_scoped_to_clinic(self):
        self.client.force_authenticate(user=self.other_owner)
        response = self.client.get(
            reverse("appointments:api_day"), {"date": self.next_monday.isoformat()}
        )
        self.assertEqual(response.data["appointments"], [])

    def test_day_view_invalid_date(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("appointments:api_day"), {"date": "nope"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_confirm_without_template_returns_400(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_confirm", args=[self.appointment.id])
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "no_template")

    def test_confirm_returns_whatsapp_link(self):
        self._set_templates(confirmation="Hi [Nome-cliente]")
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_confirm", args=[self.appointment.id])
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Hi Maria Souza")
        self.assertEqual(response.data["appointment"]["status"], "CONFIRMED")

    def test_confirm_other_clinic_returns_404(self):
        self.client.force_authenticate(user=self.other_owner)
        response = self.client.post(
            reverse("appointments:api_confirm", args=[self.appointment.id])
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_payment_on_pending_returns_409(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_payment", args=[self.appointment.id]),
            {"action": "mark_paid", "payment_method": "PIX"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_mark_paid_requires_method(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_payment", args=[self.appointment.id]),
            {"action": "mark_paid"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_and_remove_product(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_add_product", args=[self.appointment.id]),
            {"product_id": self.shampoo.id, "quantity": 2},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["total_price"], "60.00")

        response = self.client.delete(
            reverse("appointments:api_remove_product", args=[response.data["id"]])
        )
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_cancel_multiple(self):
        second = self._book(appointment_time="10:00")
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            reverse("appointments:api_cancel_multiple"),
            {"appointment_ids": [self.appointment.id, second.id]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["cancelled"], 2)
        self.assertIsNone(response.data["whatsapp_url"])


class PublicBookingPageTests(BookingTestMixin, TestCase):
    """Server-rendered booking page and its HTMX partials."""

    def test_booking_page_renders(self):
        response = self.client.get(reverse("appointments:book", args=[self.clinic.id]))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Haircut")

    def test_time_slots_partial(self):
        response = self.client.get(
            reverse("appointments:load_available_times", args=[self.clinic.id]),
            {"date": self.next_monday.isoformat(), "service_ids": [self.haircut.id]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context["slots"]), len(self.clinic.times))

    def test_post_books_and_shows_confirmation(self):
        response = self.client.post(
            reverse("appointments:book", args=[self.clinic.id]),
            {
                "service_ids": [self.haircut.id],
                "date": self.next_monday.isoformat(),
                "time": "09:00",
                "name": "Maria",
                "email": "maria@example.com",
                "phone": "11987654321",
            },
        )
        appointment = Appointment.objects.get()
        self.assertRedirects(
            response,
            reverse("appointments:booking_confirmation", args=[appointment.id]),
        )

    def test_post_with_invalid_client_details_books_nothing(self):
        with patch(
            "appointments.services.booking_service.send_booking_email"
        ) as mock_send:
            response = self.client.post(
                reverse("appointments:book", args=[self.clinic.id]),
                {
                    "service_ids": [self.haircut.id],
                    "date": self.next_monday.isoformat(),
                    "time": "09:00",
                    "name": "",
                    "email": "not-an-email",
                    "phone": "",
                },
            )
        self.assertRedirects(
            response, reverse("appointments:book", args=[self.clinic.id])
        )
        self.assertEqual(Appointment.objects.count(), 0)
        mock_send.assert_not_called()

    def test_time_slots_partial_blocks_professional_bookings(self):
        self._book(professional_id=self.professional.id)
        response = self.client.get(
            reverse("appointments:load_available_times", args=[self.clinic.id]),
            {"date": self.next_monday.isoformat(), "service_ids": [self.haircut.id]},
        )
        slot = next(s for s in response.context["slots"] if s["time"] == "09:00")
        self.assertFalse(slot["available"])

    def test_confirmation_is_private_to_booking_session(self):
        appointment = self._book()
        response = self.client.get(
            reverse("appointments:booking_confirmation", args=[appointment.id])
        )
        self.assertEqual(response.status_code, 403)
