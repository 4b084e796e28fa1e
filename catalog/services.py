"""
Catalog business logic: categories, services and products of a clinic.

Every function takes the caller's clinic and only ever touches rows of that
clinic; lookups of foreign ids raise CatalogError with code NOT_FOUND.
"""

import logging

import requests
from django.conf import settings
from django.db import transaction
from django.db.models import Max

from .models import Category, Product, Service

logger = logging.getLogger(__name__)

IMAGE_CHECK_TIMEOUT_SECONDS = 5


class CatalogError(Exception):
    def __init__(self, message, code="CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


# ════════════════════════════════════════════════════════════════
#  Categories
# ════════════════════════════════════════════════════════════════


def create_default_category(clinic):
    """Create the clinic's promotions category once; later calls return it."""
    category, created = Category.objects.get_or_create(
        clinic=clinic,
        name=settings.DEFAULT_CATEGORY_NAME,
        defaults={"order": 0},
    )
    if created:
        logger.info("[CATALOG] Default category created for clinic_id=%s", clinic.id)
    return category


def next_category_order(clinic):
    current = Category.objects.filter(clinic=clinic).aggregate(m=Max("order"))["m"]
    return 0 if current is None else current + 1


def list_categories(clinic):
    return Category.objects.filter(clinic=clinic).order_by("order", "name")


def get_category(clinic, category_id):
    try:
        return Category.objects.get(id=category_id, clinic=clinic)
    except Category.DoesNotExist:
        raise CatalogError("Category not found.", "NOT_FOUND")


def create_category(clinic, name, order=None):
    if order is None:
        order = next_category_order(clinic)
    return Category.objects.create(clinic=clinic, name=name, order=order)


def update_category(clinic, category_id, **fields):
    category = get_category(clinic, category_id)
    for attr in ("name", "order"):
        if fields.get(attr) is not None:
            setattr(category, attr, fields[attr])
    category.save()
    return category


def delete_category(clinic, category_id):
    category = get_category(clinic, category_id)
    if category.services.exists():
        raise CatalogError(
            "This category still has services. Move or delete them first.",
            "CATEGORY_IN_USE",
        )
    category.delete()


# ════════════════════════════════════════════════════════════════
#  Services
# ════════════════════════════════════════════════════════════════


def _resolve_category(clinic, data):
    if "category_id" not in data:
        return
    category_id = data.pop("category_id")
    data["category"] = (
        get_category(clinic, category_id) if category_id is not None else None
    )


def list_services(clinic):
    return (
        Service.objects.filter(clinic=clinic)
        .select_related("category")
        .order_by("category__order", "name")
    )


def get_active_services(clinic):
    """Active services in the order the public page shows them."""
    return list_services(clinic).filter(is_active=True)


def get_service(clinic, service_id):
    try:
        return Service.objects.select_related("category").get(
            id=service_id, clinic=clinic
        )
    except Service.DoesNotExist:
        raise CatalogError("Service not found.", "NOT_FOUND")


def create_service(clinic, **data):
    _resolve_category(clinic, data)
    service = Service.objects.create(clinic=clinic, **data)
    logger.info(
        "[CATALOG] Service %s created for clinic_id=%s", service.id, clinic.id
    )
    return service


@transaction.atomic
def update_service(clinic, service_id, **data):
    service = get_service(clinic, service_id)
    _resolve_category(clinic, data)
    for attr, value in data.items():
        setattr(service, attr, value)
    service.save()
    return service


def service_image_url(service):
    """The service picture, or the generic placeholder when none is set."""
    if service is None or not service.image_url:
        return settings.DEFAULT_SERVICE_IMAGE
    return service.image_url


def is_valid_image_url(url):
    """
    True when the URL answers a HEAD request with an image content type.
    Network failures count as invalid.
    """
    if not url:
        return False

    try:
        response = requests.head(
            url, allow_redirects=True, timeout=IMAGE_CHECK_TIMEOUT_SECONDS
        )
    except requests.RequestException as e:
        logger.warning("[CATALOG] Image check failed for url=%s error=%r", url, e)
        return False

    if not response.ok:
        return False

    content_type = response.headers.get("Content-Type", "")
    return content_type.lower().startswith("image/")


# ════════════════════════════════════════════════════════════════
#  Products
# ════════════════════════════════════════════════════════════════


def list_products(clinic, active_only=True):
    qs = Product.objects.filter(clinic=clinic)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def get_product(clinic, product_id):
    try:
        return Product.objects.get(id=product_id, clinic=clinic)
    except Product.DoesNotExist:
        raise CatalogError("Product not found.", "NOT_FOUND")


def create_product(clinic, **data):
    return Product.objects.create(clinic=clinic, **data)


def update_product(clinic, product_id, **data):
    product = get_product(clinic, product_id)
    for attr, value in data.items():
        setattr(product, attr, value)
    product.save()
    return product
