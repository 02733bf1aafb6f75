"""Serializers for notifications."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Notification as seen by its recipient."""

    is_read = serializers.SerializerMethodField()
    is_system = serializers.ReadOnlyField()

    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'type', 'metadata', 'is_read', 'is_system', 'created_at']
        read_only_fields = fields

    def get_is_read(self, obj: Notification) -> bool:  # type: ignore
        return bool(getattr(obj, 'seen', obj.is_read))


class AdminNotificationSerializer(serializers.ModelSerializer):
    """Admins create broadcasts (no user) or targeted notifications."""

    user = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.all(), required=False, allow_null=True
    )
    title = serializers.CharField(max_length=200)
    message = serializers.CharField(max_length=1000)

    class Meta:
        model = Notification
        fields = ['id', 'user', 'title', 'message', 'type', 'metadata', 'is_read', 'created_at']
        read_only_fields = ['id', 'is_read', 'created_at']
