"""Serializers for authentication flows (register, login, password change)."""

from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import exceptions, serializers  # type: ignore

from .models import INSTAGRAM_VALIDATOR, PHONE_VALIDATOR


User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    name = serializers.CharField(min_length=2, max_length=100)
    instagram_url = serializers.URLField(validators=[INSTAGRAM_VALIDATOR])
    phone = serializers.CharField(required=False, allow_blank=True, validators=[PHONE_VALIDATOR])
    location = serializers.CharField(required=False, allow_blank=True, max_length=100)

    def validate_email(self, value: str) -> str:  # type: ignore
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("User already exists with this email.")
        return value

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        try:
            user = User.objects.get(email__iexact=attrs.get("email", ""))
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed("Invalid email or password.")

        if not user.check_password(attrs.get("password", "")):
            raise exceptions.AuthenticationFailed("Invalid email or password.")

        if not user.is_active:
            raise exceptions.AuthenticationFailed("Account is deactivated.")

        user.touch_last_login()
        attrs["user"] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=6, write_only=True)

    def validate_current_password(self, value: str) -> str:  # type: ignore
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs["current_password"] == attrs["new_password"]:
            raise serializers.ValidationError({"new_password": "New password must differ from the current one."})
        return attrs

    def save(self, **kwargs):  # type: ignore
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user
