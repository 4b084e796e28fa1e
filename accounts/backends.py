from django.contrib.auth.backends import ModelBackend
from django.contrib.auth import get_user_model
import re

User = get_user_model()


class PhoneNumberAuthBackend(ModelBackend):
    """
    Custom authentication backend that allows login with a Brazilian phone number
    Supports these formats:
        - 11987654321
        - (11) 98765-4321
        - +55 11 98765-4321
        - 1132654321 (landline)
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None:
            username = kwargs.get("phone")

        if username is None or password is None:
            return None

        normalized_phone = self.normalize_phone_number(username)

        if not self.is_valid_phone_number(normalized_phone):
            return None

        try:
            user = User.objects.get(phone=normalized_phone)

            if user.check_password(password) and self.user_can_authenticate(user):
                return user
        except User.DoesNotExist:
            # Run the default password hasher once to reduce timing differences
            User().set_password(password)
            return None

        return None

    @staticmethod
    def normalize_phone_number(phone):
        """
        Normalize phone to DDD + number, digits only.
        Accepts: 11987654321, (11) 98765-4321, +5511987654321, 5511987654321
        Returns: 11987654321
        """
        if not phone:
            return phone

        phone = re.sub(r"\D", "", str(phone))

        # Drop the country code only when what is left is still a full number
        if phone.startswith("55") and len(phone) in (12, 13):
            phone = phone[2:]

        return phone

    @staticmethod
    def is_valid_phone_number(phone):
        """
        Validate Brazilian phone number:
        two-digit area code followed by 8 (landline) or 9 (mobile) digits
        """
        return bool(re.match(r"^[1-9]{2}\d{8,9}$", phone or ""))
