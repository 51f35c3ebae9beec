"""
Role based permission classes for the booking API.
"""
from rest_framework.permissions import BasePermission

ADMIN_ROLES = {"admin"}


class IsAdminRole(BasePermission):
    """Allow access only to operators (role ``admin`` or Django staff)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return getattr(user, "role", None) in ADMIN_ROLES or bool(user.is_staff)


class IsEscortOrAdmin(BasePermission):
    """Escorts may drive their own service progress; operators may drive any."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return getattr(user, "role", None) in ADMIN_ROLES | {"escort"} or bool(user.is_staff)
