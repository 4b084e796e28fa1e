from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class CustomUserManager(BaseUserManager):
    """Custom user manager where phone is the unique identifier"""

    def create_user(self, phone, password=None, **extra_fields):
        if not phone:
            raise ValueError("The Phone field must be set")
        user = self.model(phone=phone, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("is_verified", True)
        extra_fields.setdefault("role", CustomUser.Role.OWNER)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(phone, password, **extra_fields)


class CustomUser(AbstractUser):
    """Panel user. Clinic owners register themselves, staff are added by owners."""

    class Role(models.TextChoices):
        OWNER = "OWNER", "Clinic owner"
        STAFF = "STAFF", "Clinic staff"

    username = None
    email = models.EmailField(blank=True, null=True)

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, unique=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.OWNER)
    is_verified = models.BooleanField(
        default=False,
        help_text="Designates whether the user has verified their phone number.",
    )

    USERNAME_FIELD = "phone"
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    def __str__(self):
        return f"{self.name} ({self.phone}) - {self.role}"

    @property
    def is_owner(self):
        return self.role == self.Role.OWNER

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
