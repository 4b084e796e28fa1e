"""
One-time codes that prove a clinic owner controls their phone.

Codes go through Twilio Verify when it is configured. In DEBUG without
Twilio the code is generated here, kept in the cache and logged instead.
Attempts, cooldown and the daily cap come from the OTP_* settings.
"""

import logging
import secrets

from django.conf import settings
from django.core.cache import cache

from accounts.backends import PhoneNumberAuthBackend
from accounts.services.twilio_verify import send_otp as twilio_send_otp
from accounts.services.twilio_verify import verify_otp as twilio_verify_otp

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60
UNLIMITED_RESENDS = 999

VERIFIED = "Phone number verified successfully."


def _cache_key(kind, phone):
    # kind: code, attempts, requests or cooldown
    return f"otp:{kind}:{phone}"


def e164(phone):
    """11987654321 -> +5511987654321"""
    local = PhoneNumberAuthBackend.normalize_phone_number(phone)
    if not local:
        return phone
    return f"+{settings.WHATSAPP_COUNTRY_CODE}{local}"


def twilio_configured():
    return all(
        getattr(settings, name, None)
        for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_VERIFY_SID")
    )


def generate_otp():
    length = settings.OTP_LENGTH
    return str(secrets.randbelow(10**length)).zfill(length)


def store_otp(phone, otp):
    cache.set(_cache_key("code", phone), otp, timeout=settings.OTP_EXPIRY_SECONDS)


# ─── Limits ───────────────────────────────────────────────────────────────


def is_in_cooldown(phone):
    return cache.get(_cache_key("cooldown", phone)) is not None


def get_remaining_resends(phone):
    if not settings.ENFORCE_OTP_LIMITS:
        return UNLIMITED_RESENDS

    used = cache.get(_cache_key("requests", phone)) or 0
    return max(settings.OTP_MAX_RESEND_PER_DAY - used, 0)


def _request_refusal(phone):
    if is_in_cooldown(phone):
        logger.warning("[OTP] Cooldown active for phone=%s", phone)
        return "Please wait before requesting a new code."

    if get_remaining_resends(phone) <= 0:
        logger.warning("[OTP] Daily request cap reached for phone=%s", phone)
        return "You have reached the maximum code requests for today. Try again tomorrow."

    return None


def _record_request(phone):
    requests_key = _cache_key("requests", phone)
    if not cache.add(requests_key, 1, timeout=DAY_SECONDS):
        cache.incr(requests_key)

    cache.set(
        _cache_key("cooldown", phone),
        True,
        timeout=settings.OTP_RESEND_COOLDOWN_SECONDS,
    )
    cache.delete(_cache_key("attempts", phone))


# ─── Request / verify ─────────────────────────────────────────────────────


def request_otp(phone):
    """
    Send a code to phone, or generate a dev code when Twilio is missing
    and DEBUG is on.

    Returns (success, message) for the verification page.
    """
    refusal = _request_refusal(phone)
    if refusal:
        return False, refusal

    if twilio_configured():
        to = e164(phone)
        try:
            twilio_send_otp(to)
        except Exception:
            logger.exception("[OTP] Twilio send failed phone=%s to=%s", phone, to)
            return False, "Failed to send the code via SMS. Please check your phone number."

        # A cached dev code is checked before Twilio on verify
        cache.delete(_cache_key("code", phone))
        logger.info("[OTP] Twilio send OK phone=%s to=%s", phone, to)
        message = "Code sent successfully."

    elif settings.DEBUG:
        code = generate_otp()
        store_otp(phone, code)
        logger.warning("[OTP] Twilio not configured, dev code %s for phone=%s", code, phone)
        message = "Code generated (Dev Mode). Check console."

    else:
        logger.error("[OTP] Twilio not configured in production, cannot send code")
        return False, "SMS service is not configured."

    _record_request(phone)
    return True, message


def verify_otp(phone, entered_otp):
    """Check a code. A cached dev code takes priority over Twilio."""
    if cache.get(_cache_key("code", phone)) is not None or not twilio_configured():
        return _check_cached_code(phone, entered_otp)

    to = e164(phone)
    try:
        approved = twilio_verify_otp(to, entered_otp)
    except Exception:
        logger.exception("[OTP] Twilio verify failed phone=%s to=%s", phone, to)
        return False, "Verification failed. Please try again."

    if not approved:
        logger.warning("[OTP] Invalid or expired Twilio code phone=%s", phone)
        return False, "Invalid or expired code."

    logger.info("[OTP] Twilio verify OK phone=%s", phone)
    return True, VERIFIED


def _check_cached_code(phone, entered_otp):
    code_key = _cache_key("code", phone)
    attempts_key = _cache_key("attempts", phone)

    stored = cache.get(code_key)
    if stored is None:
        return False, "The code has expired or was never requested. Please request a new one."

    if str(entered_otp).strip() == str(stored):
        cache.delete_many([code_key, attempts_key])
        return True, VERIFIED

    attempts = (cache.get(attempts_key) or 0) + 1
    remaining = settings.OTP_MAX_ATTEMPTS - attempts
    if remaining <= 0:
        cache.delete_many([code_key, attempts_key])
        return False, "Too many incorrect attempts. Please request a new code."

    cache.set(attempts_key, attempts, timeout=settings.OTP_EXPIRY_SECONDS)
    return False, f"Incorrect code. You have {remaining} attempt(s) left."
