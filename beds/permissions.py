"""
Custom permission classes for role based access control.

Route-level checks only; per-record decisions are made by
:mod:`beds.policy` inside the services.
"""
from rest_framework.permissions import BasePermission

from beds.policy import ADMIN, is_allowed


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == ADMIN)


class CanManageCleaning(BasePermission):
    """Ward staff, bed managers and admins."""
    message = 'Insufficient permissions to manage cleaning'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_allowed(getattr(request, "user", None), 'cleaning.manage')
