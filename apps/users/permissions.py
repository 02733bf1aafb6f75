"""Permission classes shared across the API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_admin_user(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_admin") and user.is_admin()


class IsAdmin(permissions.BasePermission):
    """Only users with the admin role."""

    message = "Admin privileges required."

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_admin_user(request.user)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone may read; only admins write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_admin_user(request.user)
