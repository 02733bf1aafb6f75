"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()

USER_FIELDS = [
    "id",
    "email",
    "name",
    "phone",
    "avatar",
    "location",
    "bio",
    "instagram_url",
    "role",
    "is_active",
    "preferences",
    "last_login",
    "created_at",
    "updated_at",
]


class UserSerializer(serializers.ModelSerializer):
    """Profile of the authenticated user."""

    class Meta:
        model = User
        fields = USER_FIELDS
        read_only_fields = [
            "id",
            "email",
            "avatar",
            "role",
            "is_active",
            "last_login",
            "created_at",
            "updated_at",
        ]

    def validate_preferences(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Preferences must be an object.")
        merged = dict(self.instance.preferences if self.instance else {})
        merged.update(value)
        return merged


class UserSummarySerializer(serializers.ModelSerializer):
    """Short user representation embedded in other payloads."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "avatar"]


class AdminUserSerializer(serializers.ModelSerializer):
    """Full user management for admins."""

    password = serializers.CharField(write_only=True, min_length=6, required=False)

    class Meta:
        model = User
        fields = USER_FIELDS + ["password"]
        read_only_fields = ["id", "avatar", "last_login", "created_at", "updated_at"]

    def validate_email(self, value: str) -> str:  # type: ignore
        value = value.lower()
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):  # type: ignore
        request = self.context.get("request")
        if self.instance is not None and request is not None and self.instance.pk == request.user.pk:
            if attrs.get("is_active") is False:
                raise serializers.ValidationError({"is_active": "You cannot deactivate your own account."})
            if attrs.get("role") and attrs["role"] != self.instance.role:
                raise serializers.ValidationError({"role": "You cannot change your own role."})
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "This field is required."})
        return attrs

    def create(self, validated_data):  # type: ignore
        password = validated_data.pop("password")
        role = validated_data.get("role", User.Role.USER)
        validated_data.setdefault("is_staff", role == User.Role.ADMIN)
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):  # type: ignore
        password = validated_data.pop("password", None)
        instance = super().update(instance, validated_data)
        if "role" in validated_data:
            instance.is_staff = instance.role == User.Role.ADMIN
            instance.save(update_fields=["is_staff"])
        if password:
            instance.set_password(password)
            instance.save(update_fields=["password"])
        return instance


class AvatarSerializer(serializers.Serializer):
    avatar = serializers.ImageField()

    def validate_avatar(self, value):  # type: ignore
        if value.size > settings.UPLOAD_MAX_FILE_SIZE:
            raise serializers.ValidationError("File too large. Maximum size is 5MB.")
        content_type = getattr(value, "content_type", "") or ""
        if not content_type.startswith("image/"):
            raise serializers.ValidationError("Only image files are allowed.")
        return value
