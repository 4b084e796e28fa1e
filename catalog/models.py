from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from clinics.models import Clinic


class Category(models.Model):
    """Groups services on the public page; lower order is shown first."""

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="categories"
    )
    name = models.CharField(max_length=100)
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ["order", "name"]

    def __str__(self):
        return f"{self.name} ({self.clinic.name})"


class Service(models.Model):
    """
    Something a client can book.

    duration_minutes drives how many schedule slots an appointment occupies.
    """

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="services"
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="services",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Service length in minutes.",
    )
    image_url = models.URLField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"

    @property
    def display_image_url(self):
        return self.image_url or settings.DEFAULT_SERVICE_IMAGE


class Product(models.Model):
    """Extra items sold during an appointment."""

    clinic = models.ForeignKey(
        Clinic, on_delete=models.CASCADE, related_name="products"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
