"""Admin user management API."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import filters, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .permissions import IsAdmin
from .serializers import AdminUserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class UserViewSet(viewsets.ModelViewSet):
    """User management for admins.

    - list with search by name/email and role/is_active filters
    - `toggle_status` activates or deactivates an account
    - an admin cannot delete or deactivate their own account
    """

    serializer_class = AdminUserSerializer
    queryset = User.objects.all()
    permission_classes = [IsAdmin]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ["role", "is_active"]
    search_fields = ["name", "email"]
    ordering_fields = ["created_at", "name", "email", "last_login"]

    def destroy(self, request, *args, **kwargs):  # type: ignore
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "You cannot delete your own account."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        logger.info(f"Admin {request.user.email} deleted user {user.email}")
        return super().destroy(request, *args, **kwargs)

    @action(detail=True, methods=["patch", "post"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):  # type: ignore
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "You cannot deactivate your own account."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        is_active = user.toggle_active()
        logger.info(f"Admin {request.user.email} set is_active={is_active} for {user.email}")
        return Response(
            {
                "detail": f"User {'activated' if is_active else 'deactivated'} successfully.",
                "is_active": is_active,
            }
        )
