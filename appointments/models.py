from decimal import Decimal

from django.db import models

from catalog.models import Product, Service
from clinics.models import Clinic
from professionals.models import Professional


class Appointment(models.Model):
    """A client's booking on the clinic grid."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        CONFIRMED = "CONFIRMED", "Confirmed"
        CANCELLED = "CANCELLED", "Cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PAID = "PAID", "Paid"
        OVERDUE = "OVERDUE", "Overdue"

    class PaymentMethod(models.TextChoices):
        CASH = "CASH", "Cash"
        PIX = "PIX", "Pix"
        CREDIT_CARD = "CREDIT_CARD", "Credit card"
        DEBIT_CARD = "DEBIT_CARD", "Debit card"
        BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"

    clinic = models.ForeignKey(Clinic, on_delete=models.CASCADE, related_name="appointments")
    professional = models.ForeignKey(
        Professional, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="appointments",
    )
    client_name = models.CharField(max_length=255)
    client_email = models.EmailField()
    client_phone = models.CharField(max_length=20)
    date = models.DateField()
    time = models.CharField(max_length=5, help_text='Start slot label, "HH:MM".')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_duration = models.PositiveIntegerField(help_text="Sum of service durations in minutes.")
    services = models.ManyToManyField(
        Service, through="AppointmentService", related_name="appointments",
    )

    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, blank=True, default="",
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.client_name} - {self.clinic.name} on {self.date} {self.time}"

    @property
    def service_names(self):
        return ", ".join(line.service.name for line in self.service_lines.all())

    @property
    def products_total(self):
        return sum((line.total_price for line in self.product_lines.all()), Decimal("0"))

    class Meta:
        ordering = ["-date", "-time"]
        verbose_name = "Appointment"
        verbose_name_plural = "Appointments"
        indexes = [
            models.Index(fields=["clinic", "date"], name="appointment_clinic_date_idx"),
        ]


class AppointmentService(models.Model):
    appointment = models.ForeignKey(
        Appointment, on_delete=models.CASCADE, related_name="service_lines",
    )
    service = models.ForeignKey(
        Service, on_delete=models.PROTECT, related_name="appointment_lines",
    )

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["appointment", "service"],
                name="unique_service_per_appointment",
            ),
        ]

    def __str__(self):
        return f"Appt #{self.appointment_id} → {self.service.name}"


class AppointmentProduct(models.Model):
    """A product sold during an appointment. total_price = quantity × unit price."""

    appointment = models.ForeignKey(
        Appointment, on_delete=models.CASCADE, related_name="product_lines",
    )
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="appointment_lines",
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["appointment", "product"],
                name="unique_product_per_appointment",
            ),
        ]

    def __str__(self):
        return f"Appt #{self.appointment_id} → {self.quantity}× {self.product.name}"
