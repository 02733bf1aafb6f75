"""API views for reviews."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import is_admin_user

from . import services
from .models import Review
from .serializers import ReviewSerializer


class IsReviewerOrAdmin(permissions.BasePermission):
    """Reviewers manage their own reviews; admins manage all."""

    def has_object_permission(self, request, view, obj: Review) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.user_id == request.user.id or is_admin_user(request.user)


class ReviewViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Browse reviews (``?kind=campsite&target_id=3``) and delete your own.

    Reviews are written through the ``reviews`` action of each catalog item.
    """

    serializer_class = ReviewSerializer
    queryset = Review.objects.select_related('user').all()
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsReviewerOrAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['kind', 'target_id', 'user', 'rating']

    def destroy(self, request, *args, **kwargs):  # type: ignore
        services.delete_review(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)
