import logging

from django.shortcuts import render, redirect
from django.contrib.auth import login, logout, authenticate, get_user_model
from django.contrib.auth.decorators import login_required
from django.contrib import messages
from django.conf import settings
from django.db import transaction
from django.utils.http import url_has_allowed_host_and_scheme

from .forms import LoginForm, PhoneForm, OwnerRegistrationForm
from .otp_utils import request_otp, verify_otp, is_in_cooldown, get_remaining_resends
from clinics.services import create_clinic

logger = logging.getLogger(__name__)

User = get_user_model()


@login_required
def home_redirect(request):
    """Send panel users to their clinic dashboard"""
    user = request.user

    if request.session.get("just_registered", False):
        messages.success(
            request,
            f"Welcome, {user.name}! Your account has been successfully created.",
        )
        del request.session["just_registered"]

    if getattr(request, "clinic", None) is not None:
        return redirect("clinics:dashboard")

    if user.is_superuser:
        return redirect("admin:index")

    return redirect("accounts:login")


def login_view(request):
    """Handle user login with phone number"""
    if request.user.is_authenticated:
        return redirect("accounts:home")

    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            phone = form.cleaned_data["phone"]
            password = form.cleaned_data["password"]

            try:
                user_obj = User.objects.get(phone=phone)

                if settings.ENFORCE_PHONE_VERIFICATION and not user_obj.is_verified:
                    messages.error(
                        request,
                        "Your phone number is not verified. Please contact support.",
                    )
                    return render(request, "accounts/login.html", {"form": form})

            except User.DoesNotExist:
                messages.error(request, "Incorrect phone number or password.")
                return render(request, "accounts/login.html", {"form": form})

            user = authenticate(request, username=phone, password=password)

            if user is not None:
                login(request, user)
                messages.success(request, f"Welcome back, {user.name}!")
                next_url = request.GET.get("next")
                if next_url and url_has_allowed_host_and_scheme(
                    next_url, allowed_hosts={request.get_host()}
                ):
                    return redirect(next_url)
                return redirect("accounts:home")

            messages.error(request, "Incorrect phone number or password.")
        else:
            messages.error(request, "Please correct the errors below.")
    else:
        form = LoginForm()

    return render(request, "accounts/login.html", {"form": form})


def logout_view(request):
    """Handle user logout"""
    user_name = request.user.name if request.user.is_authenticated else None
    logout(request)

    if user_name:
        messages.info(
            request, f"Goodbye, {user_name}! You have been logged out successfully."
        )
    else:
        messages.info(request, "You have been logged out successfully.")

    return redirect("accounts:login")


# ============================================
# STEP 1: Enter phone number and request OTP
# ============================================
def register_phone(request):
    """First step: Enter phone number and send OTP"""
    if request.user.is_authenticated:
        return redirect("accounts:home")

    if request.method == "POST":
        form = PhoneForm(request.POST)
        if form.is_valid():
            phone = form.cleaned_data["phone"]
            success, message = request_otp(phone)
            if success:
                request.session["registration_phone"] = phone
                request.session.pop("phone_verified", None)
                messages.success(request, message)
                return redirect("accounts:register_verify")
            messages.error(request, message)
        else:
            for error in form.errors.get("phone", []):
                messages.error(request, error)
    else:
        form = PhoneForm()

    return render(request, "accounts/register_phone.html", {"form": form})


# ============================================
# STEP 2: Enter OTP to verify phone
# ============================================
def register_verify(request):
    """Second step: Verify OTP"""
    if request.user.is_authenticated:
        return redirect("accounts:home")

    phone = request.session.get("registration_phone")
    if not phone:
        messages.error(request, "Session expired. Please start registration again.")
        return redirect("accounts:register_phone")

    if request.method == "POST":
        if request.POST.get("action") == "resend":
            if get_remaining_resends(phone) <= 0:
                messages.error(
                    request, "You have reached the maximum code requests for today."
                )
            else:
                success, message = request_otp(phone)
                if success:
                    messages.success(request, message)
                else:
                    messages.error(request, message)
            return redirect("accounts:register_verify")

        entered_otp = request.POST.get("otp", "").strip()

        if not entered_otp:
            messages.error(request, "Please enter the verification code.")
        else:
            success, message = verify_otp(phone, entered_otp)
            if success:
                request.session["phone_verified"] = True
                messages.success(request, message)
                return redirect("accounts:register_details")
            messages.error(request, message)

    return render(
        request,
        "accounts/register_verify.html",
        {
            "phone": phone,
            "remaining_resends": get_remaining_resends(phone),
            "cooldown": is_in_cooldown(phone),
        },
    )


# ============================================
# STEP 3: Owner details and clinic creation
# ============================================
def register_details(request):
    """Third step: create the owner account and the clinic"""
    if request.user.is_authenticated:
        return redirect("accounts:home")

    phone = request.session.get("registration_phone")
    if not phone or not request.session.get("phone_verified", False):
        messages.error(request, "Please verify your phone number first.")
        return redirect("accounts:register_phone")

    if request.method == "POST":
        form = OwnerRegistrationForm(request.POST)
        if form.is_valid():
            if User.objects.filter(phone=phone).exists():
                messages.error(request, "This phone number is already registered.")
                return redirect("accounts:register_phone")

            with transaction.atomic():
                user = form.save(commit=False)
                user.phone = phone
                user.is_verified = True
                user.save()

                clinic = create_clinic(
                    owner=user,
                    name=form.cleaned_data["clinic_name"],
                    address=form.cleaned_data.get("clinic_address", ""),
                    phone=form.cleaned_data.get("clinic_phone") or phone,
                )

            logger.info(
                "[REGISTER] Owner user_id=%s created clinic_id=%s", user.id, clinic.id
            )

            request.session.pop("registration_phone", None)
            request.session.pop("phone_verified", None)

            login(request, user, backend="accounts.backends.PhoneNumberAuthBackend")
            request.session["just_registered"] = True
            return redirect("accounts:home")

        messages.error(request, "Please correct the errors below.")
    else:
        form = OwnerRegistrationForm()

    return render(
        request,
        "accounts/register_details.html",
        {"form": form, "phone": phone},
    )
