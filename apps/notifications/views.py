"""API views for notifications."""

from __future__ import annotations

from django.utils.dateparse import parse_datetime  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import APIException  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsAdmin

from . import services
from .models import Notification
from .serializers import AdminNotificationSerializer, NotificationSerializer


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Notifications visible to the authenticated user."""

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        qs = services.visible_notifications(self.request.user)
        params = self.request.query_params
        if params.get('type'):
            qs = qs.filter(type=params['type'])
        if params.get('unread_only', '').lower() in ('1', 'true'):
            qs = qs.filter(seen=False)
        return qs

    def list(self, request, *args, **kwargs):  # type: ignore
        response = super().list(request, *args, **kwargs)
        response.data['unread_count'] = services.unread_count(request.user)
        return response

    def destroy(self, request, *args, **kwargs):  # type: ignore
        notification = self.get_object()
        if notification.user_id != request.user.id:
            return Response(
                {'detail': 'System notifications cannot be deleted.'},
                status=status.HTTP_403_FORBIDDEN,
            )
        notification.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):  # type: ignore
        return Response({'unread_count': services.unread_count(request.user)})

    @action(detail=True, methods=['post', 'patch'], url_path='read')
    def mark_read(self, request, pk=None):  # type: ignore
        notification = self.get_object()
        services.mark_read(notification, request.user)
        return Response({'status': 'read'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post', 'patch'], url_path='read-all')
    def mark_all_read(self, request):  # type: ignore
        updated = services.mark_all_read(request.user)
        return Response({'status': 'read', 'updated': updated}, status=status.HTTP_200_OK)


class AdminNotificationViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Every notification in the system, for admins."""

    serializer_class = AdminNotificationSerializer
    permission_classes = [IsAdmin]
    queryset = Notification.objects.select_related('user').all()
    filterset_fields = ['type', 'user', 'is_read']

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.request.query_params.get('system', '').lower() in ('1', 'true'):
            qs = qs.filter(user__isnull=True)
        since = self.request.query_params.get('since')
        if since and parse_datetime(since):
            qs = qs.filter(created_at__gte=parse_datetime(since))
        return qs

    def perform_create(self, serializer):  # type: ignore
        data = serializer.validated_data
        if data.get('user') is None:
            serializer.instance = services.create_system_notification(
                data['title'],
                data['message'],
                type=data.get('type', Notification.Type.INFO),
                metadata=data.get('metadata'),
            )
            return
        notification = services.create_user_notification(
            data['user'],
            data['title'],
            data['message'],
            type=data.get('type', Notification.Type.INFO),
            metadata=data.get('metadata'),
        )
        if notification is None:
            raise APIException("Notification could not be created.")
        serializer.instance = notification
