from django.http import HttpResponseForbidden

from .services import get_user_clinic

# Panel areas; public booking routes under them contain "/public/"
PANEL_PREFIXES = (
    "/clinics/",
    "/catalog/",
    "/professionals/",
    "/appointments/",
    "/finance/",
)


class ClinicIsolationMiddleware:
    """
    Middleware to enforce tenant isolation.
    1. Anonymous users and superusers: pass through, no clinic scope.
    2. Owners and staff: request.clinic / request.clinic_id are set from the
       owned clinic or the active ClinicStaff membership.
    3. Panel users without a clinic get 403 on panel paths.

    JWT-authenticated API calls are resolved again by the API permission
    classes, since the token is only read inside DRF.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.clinic = None
        request.clinic_id = None

        if not request.user.is_authenticated:
            return self.get_response(request)

        clinic = get_user_clinic(request.user)

        if clinic is not None:
            request.clinic = clinic
            request.clinic_id = clinic.id
            return self.get_response(request)

        if request.user.is_superuser:
            return self.get_response(request)

        path = request.path
        if path.startswith(PANEL_PREFIXES) and "/public/" not in path:
            return HttpResponseForbidden(
                "Access Denied: You are not assigned to any active clinic."
            )

        return self.get_response(request)
