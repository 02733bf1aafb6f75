"""Serializers for newsletter and contact endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import NewsletterSubscriber

EQUIPMENT_INTERESTS = ["Tents", "Sleeping Bags", "Backpacks", "Cooking Equipment", "Other", "None"]


class SubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField()
    source = serializers.CharField(max_length=50, required=False, default="website")


class UnsubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField()


class NewsletterSubscriberSerializer(serializers.ModelSerializer):
    class Meta:
        model = NewsletterSubscriber
        fields = ["id", "email", "is_active", "source", "subscribed_at"]


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    phone = serializers.RegexField(
        r"^[\d\s\-+()]+$",
        required=False,
        allow_blank=True,
        default="",
        error_messages={"invalid": "Please provide a valid phone number."},
    )
    message = serializers.CharField(min_length=10, max_length=1000)
    equipment_interest = serializers.ChoiceField(choices=EQUIPMENT_INTERESTS, required=False, default="None")


class BookingSupportSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=20)
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    message = serializers.CharField(min_length=10, max_length=1000)
