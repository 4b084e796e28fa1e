from rest_framework import permissions

from .services import get_user_clinic


class IsClinicMember(permissions.BasePermission):
    """
    Allows access only to authenticated users who work in a clinic.
    Sets request.clinic for the view (the middleware cannot see JWT users).
    """

    message = "You are not assigned to any active clinic."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False

        clinic = getattr(request, "clinic", None) or get_user_clinic(request.user)
        if clinic is None:
            return False

        request.clinic = clinic
        return True


class IsClinicOwner(IsClinicMember):
    """Clinic members whose role is OWNER."""

    message = "Only the clinic owner can do this."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.clinic.owner_id == request.user.id
