import os
from io import StringIO
from unittest.mock import patch

from django.conf import settings
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, Client, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.backends import PhoneNumberAuthBackend
from accounts.forms import LoginForm, OwnerRegistrationForm, PhoneForm
from accounts.models import CustomUser
from accounts.otp_utils import (
    _cache_key,
    get_remaining_resends,
    request_otp,
    store_otp,
    verify_otp,
)
from catalog.models import Category
from clinics.models import Clinic


class PhoneNumberValidationTest(TestCase):
    """Test Brazilian phone number normalization and validation"""

    def test_normalization(self):
        """Punctuation and the 55 country code are removed"""
        cases = {
            '11987654321': '11987654321',
            '(11) 98765-4321': '11987654321',
            '+55 11 98765-4321': '11987654321',
            '5511987654321': '11987654321',
            '551132654321': '1132654321',
        }
        for raw, expected in cases.items():
            self.assertEqual(
                PhoneNumberAuthBackend.normalize_phone_number(raw), expected, raw
            )

    def test_area_code_55_is_kept(self):
        """A number from area code 55 is not mistaken for a country code"""
        self.assertEqual(
            PhoneNumberAuthBackend.normalize_phone_number('55987654321'), '55987654321'
        )

    def test_valid_phone_formats(self):
        for phone in ['11987654321', '1132654321', '21912345678']:
            self.assertTrue(PhoneNumberAuthBackend.is_valid_phone_number(phone), phone)

    def test_invalid_phone_formats(self):
        invalid_phones = [
            '123456789',      # Too short
            '119876543210',   # Too long
            '01987654321',    # Area code cannot start with 0
            '10987654321',    # Area code cannot contain 0
            'abcd',           # Letters
            '',
        ]
        for phone in invalid_phones:
            self.assertFalse(PhoneNumberAuthBackend.is_valid_phone_number(phone), phone)

    def test_phone_form_rejects_duplicates(self):
        """Test that duplicate phone numbers are rejected"""
        CustomUser.objects.create_user(
            phone='11987654321', name='Existing', password='TestPass123!@#'
        )
        form = PhoneForm(data={'phone': '(11) 98765-4321'})
        self.assertFalse(form.is_valid())
        self.assertIn('phone', form.errors)

    def test_phone_form_normalizes(self):
        form = PhoneForm(data={'phone': '+55 (21) 91234-5678'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['phone'], '21912345678')


class LoginWithPhoneTest(TestCase):
    """Test login with different phone formats"""

    def setUp(self):
        self.client = Client()
        self.user = CustomUser.objects.create_user(
            phone='11987654321',
            name='Owner User',
            password='TestPass123!@#',
        )

    def test_login_form_normalizes_phone(self):
        form = LoginForm(data={
            'phone': '+55 (11) 98765-4321',
            'password': 'TestPass123!@#'
        })
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['phone'], '11987654321')

    def test_successful_login_formatted_phone(self):
        """Test actual login with a formatted phone number"""
        response = self.client.post(reverse('accounts:login'), {
            'phone': '(11) 98765-4321',
            'password': 'TestPass123!@#'
        })
        self.assertEqual(response.status_code, 302)

    def test_wrong_password(self):
        response = self.client.post(reverse('accounts:login'), {
            'phone': '11987654321',
            'password': 'wrong-password'
        })
        self.assertEqual(response.status_code, 200)
        self.assertNotIn('_auth_user_id', self.client.session)

    @override_settings(ENFORCE_PHONE_VERIFICATION=True)
    def test_unverified_user_cannot_login_when_enforced(self):
        response = self.client.post(reverse('accounts:login'), {
            'phone': '11987654321',
            'password': 'TestPass123!@#'
        })
        self.assertEqual(response.status_code, 200)
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_owner_lands_on_dashboard(self):
        Clinic.objects.create(owner=self.user, name='My Clinic')
        self.client.login(phone='11987654321', password='TestPass123!@#')
        response = self.client.get(reverse('accounts:home'))
        self.assertRedirects(response, reverse('clinics:dashboard'))


class OtpTest(TestCase):
    """Test the OTP request / verify cycle"""

    phone = '11987654321'

    def setUp(self):
        cache.clear()

    @override_settings(DEBUG=True)
    def test_mock_otp_in_debug(self):
        success, _ = request_otp(self.phone)
        self.assertTrue(success)

        code = cache.get(_cache_key("code", self.phone))
        self.assertIsNotNone(code)
        self.assertEqual(verify_otp(self.phone, code)[0], True)
        # Codes are single use
        self.assertEqual(verify_otp(self.phone, code)[0], False)

    @override_settings(DEBUG=True)
    def test_cooldown_blocks_second_request(self):
        self.assertTrue(request_otp(self.phone)[0])
        success, message = request_otp(self.phone)
        self.assertFalse(success)
        self.assertIn('wait', message)

    @override_settings(DEBUG=False, TWILIO_ACCOUNT_SID='', TWILIO_AUTH_TOKEN='', TWILIO_VERIFY_SID='')
    def test_no_sms_provider_in_production(self):
        success, message = request_otp(self.phone)
        self.assertFalse(success)
        self.assertEqual(message, 'SMS service is not configured.')

    def test_too_many_wrong_attempts(self):
        store_otp(self.phone, '123456')
        for _ in range(settings.OTP_MAX_ATTEMPTS - 1):
            self.assertFalse(verify_otp(self.phone, '000000')[0])

        success, message = verify_otp(self.phone, '000000')
        self.assertFalse(success)
        self.assertIn('Too many', message)
        self.assertIsNone(cache.get(_cache_key("code", self.phone)))

    @override_settings(OTP_MAX_ATTEMPTS=1)
    def test_attempt_limit_comes_from_settings(self):
        store_otp(self.phone, '123456')
        success, message = verify_otp(self.phone, '000000')
        self.assertFalse(success)
        self.assertIn('Too many', message)
        self.assertFalse(verify_otp(self.phone, '123456')[0])

    @override_settings(DEBUG=True, OTP_LENGTH=4)
    def test_code_length_comes_from_settings(self):
        self.assertTrue(request_otp(self.phone)[0])
        code = cache.get(_cache_key("code", self.phone))
        self.assertEqual(len(code), 4)
        self.assertTrue(code.isdigit())

    @override_settings(
        DEBUG=True,
        ENFORCE_OTP_LIMITS=True,
        OTP_MAX_RESEND_PER_DAY=1,
        OTP_RESEND_COOLDOWN_SECONDS=0,
    )
    def test_daily_request_cap(self):
        self.assertTrue(request_otp(self.phone)[0])
        self.assertEqual(get_remaining_resends(self.phone), 0)

        success, message = request_otp(self.phone)
        self.assertFalse(success)
        self.assertIn('maximum', message)

    def test_requests_are_unlimited_without_enforcement(self):
        self.assertGreater(get_remaining_resends(self.phone), 0)

    @override_settings(TWILIO_ACCOUNT_SID='AC123', TWILIO_AUTH_TOKEN='token', TWILIO_VERIFY_SID='VA123')
    def test_twilio_receives_e164_phone(self):
        with patch('accounts.otp_utils.twilio_send_otp') as mock_send:
            success, message = request_otp(self.phone)

        self.assertTrue(success)
        self.assertEqual(message, 'Code sent successfully.')
        mock_send.assert_called_once_with('+5511987654321')

    @override_settings(TWILIO_ACCOUNT_SID='AC123', TWILIO_AUTH_TOKEN='token', TWILIO_VERIFY_SID='VA123')
    def test_twilio_failure_is_reported(self):
        with patch('accounts.otp_utils.twilio_send_otp', side_effect=Exception('boom')):
            success, _ = request_otp(self.phone)
        self.assertFalse(success)


@override_settings(DEBUG=True)
class OwnerRegistrationFlowTest(TestCase):
    """Test the three step clinic owner registration"""

    def setUp(self):
        cache.clear()
        self.client = Client()

    def _details(self, **overrides):
        data = {
            'name': 'Ana Paula',
            'email': 'ana@example.com',
            'password1': 'StrongPass123!@#',
            'password2': 'StrongPass123!@#',
            'clinic_name': 'Studio Ana',
            'clinic_address': 'Rua das Flores, 10',
            'clinic_phone': '',
        }
        data.update(overrides)
        return data

    def test_successful_registration(self):
        """Phone, code and details create the owner and the clinic"""
        response = self.client.post(reverse('accounts:register_phone'), {
            'phone': '(11) 98765-4321',
        })
        self.assertRedirects(response, reverse('accounts:register_verify'))

        code = cache.get(_cache_key('code', '11987654321'))
        response = self.client.post(reverse('accounts:register_verify'), {
            'action': 'verify',
            'otp': code,
        })
        self.assertRedirects(response, reverse('accounts:register_details'))

        response = self.client.post(reverse('accounts:register_details'), self._details())
        self.assertEqual(response.status_code, 302)

        user = CustomUser.objects.get(phone='11987654321')
        self.assertEqual(user.name, 'Ana Paula')
        self.assertEqual(user.role, CustomUser.Role.OWNER)
        self.assertTrue(user.is_verified)
        self.assertTrue(user.check_password('StrongPass123!@#'))

        clinic = Clinic.objects.get(owner=user)
        self.assertEqual(clinic.name, 'Studio Ana')
        # Falls back to the owner's phone
        self.assertEqual(clinic.phone, '11987654321')
        self.assertTrue(
            Category.objects.filter(clinic=clinic, name='Promotions', order=0).exists()
        )

    def test_details_require_verified_phone(self):
        session = self.client.session
        session['registration_phone'] = '11987654321'
        session.save()

        response = self.client.post(reverse('accounts:register_details'), self._details())
        self.assertRedirects(response, reverse('accounts:register_phone'))
        self.assertFalse(CustomUser.objects.exists())

    def test_wrong_code_stays_on_verify(self):
        self.client.post(reverse('accounts:register_phone'), {'phone': '11987654321'})
        response = self.client.post(reverse('accounts:register_verify'), {
            'action': 'verify',
            'otp': '000000',
        })
        self.assertEqual(response.status_code, 200)
        self.assertNotIn('phone_verified', self.client.session)


class OwnerRegistrationFormTest(TestCase):
    """Test the details form validation"""

    def _form(self, **overrides):
        data = {
            'name': 'Ana Paula',
            'email': '',
            'password1': 'StrongPass123!@#',
            'password2': 'StrongPass123!@#',
            'clinic_name': 'Studio Ana',
        }
        data.update(overrides)
        return OwnerRegistrationForm(data=data)

    def test_valid(self):
        form = self._form()
        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.cleaned_data['email'])

    def test_invalid_names(self):
        for name in ['Al', '12345', '   ']:
            form = self._form(name=name)
            self.assertFalse(form.is_valid(), name)
            self.assertIn('name', form.errors)

    def test_passwords_must_match(self):
        form = self._form(password2='Different123!@#')
        self.assertFalse(form.is_valid())
        self.assertIn('password2', form.errors)

    def test_duplicate_email(self):
        CustomUser.objects.create_user(
            phone='11987654321', name='Existing', email='ana@example.com', password='x'
        )
        form = self._form(email='ANA@example.com')
        self.assertFalse(form.is_valid())
        self.assertIn('email', form.errors)

    def test_invalid_clinic_phone(self):
        form = self._form(clinic_phone='123')
        self.assertFalse(form.is_valid())
        self.assertIn('clinic_phone', form.errors)


class JwtLoginTest(TestCase):
    """Test the token API"""

    def setUp(self):
        self.client = APIClient()
        self.user = CustomUser.objects.create_user(
            phone='11987654321', name='Owner User', password='TestPass123!@#'
        )

    def test_login_with_phone(self):
        response = self.client.post(reverse('accounts:api_login'), {
            'phone': '(11) 98765-4321',
            'password': 'TestPass123!@#',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_with_username_key(self):
        response = self.client.post(reverse('accounts:api_login'), {
            'username': '11987654321',
            'password': 'TestPass123!@#',
        }, format='json')
        self.assertEqual(response.status_code, 200)

    def test_wrong_password(self):
        response = self.client.post(reverse('accounts:api_login'), {
            'phone': '11987654321',
            'password': 'nope',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_logout_blacklists_refresh(self):
        response = self.client.post(reverse('accounts:api_login'), {
            'phone': '11987654321',
            'password': 'TestPass123!@#',
        }, format='json')
        refresh = response.data['refresh']

        response = self.client.post(
            reverse('accounts:api_logout'), {'refresh_token': refresh}, format='json'
        )
        self.assertEqual(response.status_code, 200)

        response = self.client.post(
            reverse('accounts:token_refresh'), {'refresh': refresh}, format='json'
        )
        self.assertEqual(response.status_code, 401)


class CreateSuperAdminCommandTest(TestCase):
    """Test the create_super_admin management command"""

    env = {
        'DJANGO_SUPERUSER_PHONE': '(11) 98765-0000',
        'DJANGO_SUPERUSER_PASSWORD': 'AdminPass123!@#',
        'DJANGO_SUPERUSER_NAME': 'Platform Admin',
    }

    def _run(self, *args, env=None):
        out = StringIO()
        with patch.dict(os.environ, env if env is not None else self.env):
            call_command('create_super_admin', *args, stdout=out)
        return out.getvalue()

    def test_creates_superuser_with_clinic(self):
        output = self._run('--clinic-name', 'Demo Clinic')

        user = CustomUser.objects.get(phone='11987650000')
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_staff)
        self.assertIn('Created superuser', output)

        clinic = Clinic.objects.get(owner=user)
        self.assertEqual(clinic.name, 'Demo Clinic')
        self.assertTrue(Category.objects.filter(clinic=clinic).exists())

    def test_running_twice_keeps_one_clinic(self):
        self._run('--clinic-name', 'Demo Clinic')
        output = self._run('--clinic-name', 'Demo Clinic')

        self.assertIn('already exists', output)
        self.assertEqual(Clinic.objects.count(), 1)

    def test_promotes_existing_user(self):
        CustomUser.objects.create_user(
            phone='11987650000', name='Existing', password='TestPass123!@#'
        )
        output = self._run()

        user = CustomUser.objects.get(phone='11987650000')
        self.assertTrue(user.is_superuser)
        self.assertIn('Granted superuser', output)

    def test_missing_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            out = StringIO()
            call_command('create_super_admin', stdout=out)
        self.assertIn('Missing', out.getvalue())
        self.assertFalse(CustomUser.objects.exists())
