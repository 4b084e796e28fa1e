"""
Tests for the catalog app.

Covers:
- Default category and category ordering
- Service / product services scoped to a clinic
- Image URL check
- API endpoints
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from catalog.models import Category, Product, Service
from catalog.services import (
    CatalogError,
    create_category,
    create_default_category,
    delete_category,
    get_active_services,
    get_service,
    is_valid_image_url,
    list_products,
    next_category_order,
    service_image_url,
    update_service,
)
from clinics.services import create_clinic

User = get_user_model()


class CatalogTestMixin:
    def setUp(self):
        self.owner = User.objects.create_user(
            phone="11987650101", password="pass1234", name="Owner"
        )
        self.other_owner = User.objects.create_user(
            phone="11987650102", password="pass1234", name="Other"
        )
        self.clinic = create_clinic(self.owner, "Studio")
        self.other_clinic = create_clinic(self.other_owner, "Elsewhere")


# ═══════════════════════════════════════════════════════════════════════
#  Categories
# ═══════════════════════════════════════════════════════════════════════


class CategoryServiceTests(CatalogTestMixin, TestCase):
    def test_new_clinic_has_promotions_category(self):
        categories = list(Category.objects.filter(clinic=self.clinic))
        self.assertEqual(len(categories), 1)
        self.assertEqual(categories[0].name, "Promotions")
        self.assertEqual(categories[0].order, 0)

    def test_default_category_is_created_once(self):
        first = create_default_category(self.clinic)
        second = create_default_category(self.clinic)
        self.assertEqual(first.id, second.id)
        self.assertEqual(Category.objects.filter(clinic=self.clinic).count(), 1)

    def test_next_order_follows_highest(self):
        create_category(self.clinic, "Hair", order=5)
        self.assertEqual(next_category_order(self.clinic), 6)

        category = create_category(self.clinic, "Nails")
        self.assertEqual(category.order, 6)

    def test_delete_refused_while_services_use_it(self):
        category = create_category(self.clinic, "Hair")
        Service.objects.create(
            clinic=self.clinic, category=category, name="Cut",
            price=Decimal("40.00"), duration_minutes=30,
        )

        with self.assertRaises(CatalogError) as ctx:
            delete_category(self.clinic, category.id)
        self.assertEqual(ctx.exception.code, "CATEGORY_IN_USE")
        self.assertTrue(Category.objects.filter(id=category.id).exists())

    def test_foreign_category_not_found(self):
        foreign = create_category(self.other_clinic, "Theirs")
        with self.assertRaises(CatalogError) as ctx:
            delete_category(self.clinic, foreign.id)
        self.assertEqual(ctx.exception.code, "NOT_FOUND")


# ═══════════════════════════════════════════════════════════════════════
#  Services and products
# ═══════════════════════════════════════════════════════════════════════


class ServiceCatalogTests(CatalogTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.first = create_category(self.clinic, "First", order=1)
        self.second = create_category(self.clinic, "Second", order=2)

    def _service(self, name, category, **extra):
        return Service.objects.create(
            clinic=self.clinic, category=category, name=name,
            price=Decimal("50.00"), duration_minutes=30, **extra
        )

    def test_active_services_ordered_by_category_then_name(self):
        self._service("Zeta", self.first)
        self._service("Alpha", self.second)
        self._service("Beta", self.first)
        self._service("Hidden", self.first, is_active=False)

        names = [s.name for s in get_active_services(self.clinic)]
        self.assertEqual(names, ["Beta", "Zeta", "Alpha"])

    def test_foreign_service_not_found(self):
        foreign = Service.objects.create(
            clinic=self.other_clinic, name="Theirs",
            price=Decimal("10.00"), duration_minutes=30,
        )
        with self.assertRaises(CatalogError):
            get_service(self.clinic, foreign.id)

    def test_update_cannot_move_to_foreign_category(self):
        service = self._service("Cut", self.first)
        foreign = create_category(self.other_clinic, "Theirs")

        with self.assertRaises(CatalogError):
            update_service(self.clinic, service.id, category_id=foreign.id)

        service.refresh_from_db()
        self.assertEqual(service.category_id, self.first.id)

    @override_settings(DEFAULT_SERVICE_IMAGE="/static/generic.png")
    def test_image_fallback(self):
        service = self._service("Cut", self.first)
        self.assertEqual(service_image_url(service), "/static/generic.png")

        service.image_url = "https://cdn.example.com/cut.png"
        self.assertEqual(service_image_url(service), "https://cdn.example.com/cut.png")

    def test_products_active_only_by_default(self):
        Product.objects.create(clinic=self.clinic, name="Wax", price=Decimal("20.00"))
        Product.objects.create(
            clinic=self.clinic, name="Gel", price=Decimal("15.00"), is_active=False
        )

        self.assertEqual([p.name for p in list_products(self.clinic)], ["Wax"])
        self.assertEqual(
            [p.name for p in list_products(self.clinic, active_only=False)],
            ["Gel", "Wax"],
        )


class ImageCheckTests(TestCase):
    def _response(self, ok=True, content_type="image/png"):
        response = MagicMock()
        response.ok = ok
        response.headers = {"Content-Type": content_type}
        return response

    @patch("catalog.services.requests.head")
    def test_image_content_type_is_valid(self, mock_head):
        mock_head.return_value = self._response()
        self.assertTrue(is_valid_image_url("https://cdn.example.com/a.png"))
        mock_head.assert_called_once()

    @patch("catalog.services.requests.head")
    def test_html_page_is_invalid(self, mock_head):
        mock_head.return_value = self._response(content_type="text/html")
        self.assertFalse(is_valid_image_url("https://example.com/"))

    @patch("catalog.services.requests.head")
    def test_error_status_is_invalid(self, mock_head):
        mock_head.return_value = self._response(ok=False)
        self.assertFalse(is_valid_image_url("https://cdn.example.com/missing.png"))

    @patch("catalog.services.requests.head", side_effect=requests.ConnectionError("down"))
    def test_network_failure_is_invalid(self, mock_head):
        self.assertFalse(is_valid_image_url("https://cdn.example.com/a.png"))

    def test_empty_url(self):
        self.assertFalse(is_valid_image_url(""))


# ═══════════════════════════════════════════════════════════════════════
#  API
# ═══════════════════════════════════════════════════════════════════════


class CatalogAPITests(CatalogTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def test_requires_authentication(self):
        response = APIClient().get(reverse("catalog:api_categories"))
        self.assertIn(
            response.status_code,
            (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN),
        )

    def test_create_category_appends_order(self):
        response = self.client.post(
            reverse("catalog:api_categories"), {"name": "Hair"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["order"], 1)
        self.assertEqual(response.data["service_count"], 0)

    def test_create_service(self):
        category = create_category(self.clinic, "Hair")
        response = self.client.post(
            reverse("catalog:api_services"),
            {
                "name": "Haircut",
                "price": "45.00",
                "duration_minutes": 40,
                "category_id": category.id,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["category_name"], "Hair")

        service = Service.objects.get(id=response.data["id"])
        self.assertEqual(service.clinic, self.clinic)
        self.assertEqual(service.price, Decimal("45.00"))

    def test_service_price_must_be_positive(self):
        response = self.client.post(
            reverse("catalog:api_services"),
            {"name": "Free", "price": "0.00", "duration_minutes": 30},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_category_is_404(self):
        foreign = create_category(self.other_clinic, "Theirs")
        response = self.client.get(
            reverse("catalog:api_category_detail", args=[foreign.id])
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "NOT_FOUND")

    def test_delete_category_in_use_is_400(self):
        category = create_category(self.clinic, "Hair")
        Service.objects.create(
            clinic=self.clinic, category=category, name="Cut",
            price=Decimal("40.00"), duration_minutes=30,
        )
        response = self.client.delete(
            reverse("catalog:api_category_detail", args=[category.id])
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "CATEGORY_IN_USE")

    @patch("catalog.api_views.is_valid_image_url", return_value=True)
    def test_check_image(self, mock_check):
        response = self.client.post(
            reverse("catalog:api_check_image"),
            {"url": "https://cdn.example.com/a.png"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"valid": True})

    def test_product_list_with_inactive(self):
        Product.objects.create(clinic=self.clinic, name="Wax", price=Decimal("20.00"))
        Product.objects.create(
            clinic=self.clinic, name="Gel", price=Decimal("15.00"), is_active=False
        )
        Product.objects.create(
            clinic=self.other_clinic, name="Foreign", price=Decimal("5.00")
        )

        response = self.client.get(reverse("catalog:api_products"))
        self.assertEqual([p["name"] for p in response.data], ["Wax"])

        response = self.client.get(reverse("catalog:api_products"), {"all": "1"})
        self.assertEqual([p["name"] for p in response.data], ["Gel", "Wax"])
