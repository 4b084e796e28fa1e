from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from rest_framework import serializers
from django.conf import settings

from accounts.backends import PhoneNumberAuthBackend

User = get_user_model()


class LoginSerializer(TokenObtainPairSerializer):
    """
    JWT login with phone number.
    Accepts the phone in "phone" (the user model username field) or "username".
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Clients may send the phone under "username" instead
        self.fields[self.username_field].required = False

    def validate(self, attrs):
        initial = getattr(self, "initial_data", {}) or {}
        phone = attrs.get(self.username_field) or initial.get("username")
        password = attrs.get("password")

        if not phone or not password:
            raise serializers.ValidationError('Must include "phone" and "password".')

        normalized_phone = PhoneNumberAuthBackend.normalize_phone_number(phone)

        try:
            user = User.objects.get(phone=normalized_phone)
        except User.DoesNotExist:
            raise serializers.ValidationError(
                {"detail": "No active account found with the given credentials"}
            )

        if settings.ENFORCE_PHONE_VERIFICATION and not user.is_verified:
            raise serializers.ValidationError(
                {"detail": "Phone number is not verified."}
            )

        if not user.check_password(password):
            raise serializers.ValidationError({"detail": "Incorrect password."})

        attrs[self.username_field] = normalized_phone

        return super().validate(attrs)

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token["name"] = user.name
        token["role"] = user.role
        return token
