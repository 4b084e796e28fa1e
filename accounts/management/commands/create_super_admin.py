import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from accounts.backends import PhoneNumberAuthBackend
from clinics.models import Clinic
from clinics.services import create_clinic


class Command(BaseCommand):
    help = (
        "Creates (or promotes) the platform superuser from DJANGO_SUPERUSER_* "
        "environment variables. With --clinic-name the superuser also gets a "
        "demo clinic to try the panel with."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--clinic-name",
            default="",
            help="Open a clinic owned by the superuser unless it already owns one.",
        )

    def handle(self, *args, **options):
        User = get_user_model()
        phone = PhoneNumberAuthBackend.normalize_phone_number(
            os.environ.get("DJANGO_SUPERUSER_PHONE")
        )
        password = os.environ.get("DJANGO_SUPERUSER_PASSWORD")

        if not phone or not password:
            self.stdout.write(
                self.style.ERROR(
                    "Missing DJANGO_SUPERUSER_PHONE or DJANGO_SUPERUSER_PASSWORD environment variables."
                )
            )
            return

        if not PhoneNumberAuthBackend.is_valid_phone_number(phone):
            self.stdout.write(self.style.ERROR(f"Invalid phone number '{phone}'."))
            return

        user = User.objects.filter(phone=phone).first()
        if user is None:
            user = User.objects.create_superuser(
                phone=phone,
                password=password,
                name=os.environ.get("DJANGO_SUPERUSER_NAME", "Super Admin"),
                email=os.environ.get("DJANGO_SUPERUSER_EMAIL") or None,
            )
            self.stdout.write(self.style.SUCCESS(f"Created superuser '{phone}'."))
        elif not (user.is_superuser and user.is_staff):
            user.is_superuser = True
            user.is_staff = True
            user.save(update_fields=["is_superuser", "is_staff"])
            self.stdout.write(
                self.style.SUCCESS(f"Granted superuser privileges to '{phone}'.")
            )
        else:
            self.stdout.write(f"Superuser '{phone}' already exists.")

        clinic_name = options["clinic_name"].strip()
        if clinic_name and not Clinic.objects.filter(owner=user).exists():
            clinic = create_clinic(user, clinic_name, phone=phone)
            self.stdout.write(
                self.style.SUCCESS(f"Opened clinic '{clinic.name}' (id={clinic.id}).")
            )
