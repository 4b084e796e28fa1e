import logging

from django.conf import settings
from twilio.rest import Client

logger = logging.getLogger(__name__)

_client = None


def get_client():
    global _client
    if _client is None:
        _client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    return _client


def _verify_service():
    return get_client().verify.v2.services(settings.TWILIO_VERIFY_SID)


def send_otp(phone: str):
    """Start a Verify session for an E.164 phone over the configured channel."""
    channel = getattr(settings, "TWILIO_VERIFY_CHANNEL", "sms")
    verification = _verify_service().verifications.create(to=phone, channel=channel)
    logger.info("[OTP] Twilio verification sid=%s channel=%s", verification.sid, channel)
    return verification


def verify_otp(phone: str, code: str) -> bool:
    check = _verify_service().verification_checks.create(to=phone, code=code)
    return check.status == "approved"
