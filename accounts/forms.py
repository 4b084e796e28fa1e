from django import forms
from django.core.exceptions import ValidationError
from .backends import PhoneNumberAuthBackend
from .models import CustomUser
import re


class LoginForm(forms.Form):
    phone = forms.CharField(
        max_length=20,
        widget=forms.TextInput(attrs={'placeholder': '(11) 98765-4321'})
    )
    password = forms.CharField(
        widget=forms.PasswordInput(attrs={'placeholder': 'Enter your password'})
    )

    def clean_phone(self):
        phone = self.cleaned_data.get('phone', '').strip()
        return PhoneNumberAuthBackend.normalize_phone_number(phone)


class PhoneForm(forms.Form):
    phone = forms.CharField(max_length=20)

    def clean_phone(self):
        phone = PhoneNumberAuthBackend.normalize_phone_number(
            (self.cleaned_data.get('phone') or '').strip()
        )

        if not PhoneNumberAuthBackend.is_valid_phone_number(phone):
            raise ValidationError(
                "Invalid phone number. Use the area code followed by the number, e.g. (11) 98765-4321."
            )

        if CustomUser.objects.filter(phone=phone).exists():
            raise ValidationError("This phone number is already registered.")

        return phone


class OwnerRegistrationForm(forms.ModelForm):
    """Last registration step: owner details plus the clinic being opened."""

    password1 = forms.CharField(
        label="Password",
        widget=forms.PasswordInput,
    )
    password2 = forms.CharField(
        label="Confirm Password",
        widget=forms.PasswordInput,
    )

    clinic_name = forms.CharField(max_length=255)
    clinic_address = forms.CharField(
        widget=forms.Textarea(attrs={'rows': 3}), required=False
    )
    clinic_phone = forms.CharField(max_length=20, required=False)

    class Meta:
        model = CustomUser
        fields = ['name', 'email']

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if len(name) < 3:
            raise ValidationError("Name must be at least 3 characters long.")
        if not re.search(r'[^\W\d_]', name):
            raise ValidationError("Name must contain at least one letter.")
        return name

    def clean_email(self):
        email = (self.cleaned_data.get('email') or '').strip()
        if not email:
            return None

        if CustomUser.objects.filter(email__iexact=email).exists():
            raise ValidationError("This email is already registered.")

        return email

    def clean_clinic_name(self):
        clinic_name = (self.cleaned_data.get('clinic_name') or '').strip()
        if len(clinic_name) < 2:
            raise ValidationError("Clinic name must be at least 2 characters long.")
        return clinic_name

    def clean_clinic_phone(self):
        phone = (self.cleaned_data.get('clinic_phone') or '').strip()
        if not phone:
            return ''

        phone = PhoneNumberAuthBackend.normalize_phone_number(phone)
        if not PhoneNumberAuthBackend.is_valid_phone_number(phone):
            raise ValidationError("Invalid clinic phone number.")
        return phone

    def clean_password1(self):
        password1 = self.cleaned_data.get('password1')
        if password1 and len(password1) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        return password1

    def clean_password2(self):
        password1 = self.cleaned_data.get('password1')
        password2 = self.cleaned_data.get('password2')

        if password1 and password2 and password1 != password2:
            raise ValidationError("Passwords do not match.")

        return password2

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_password(self.cleaned_data['password1'])
        user.role = CustomUser.Role.OWNER
        if commit:
            user.save()
        return user
