"""Serializers for reviews."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserSummarySerializer

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'user', 'kind', 'target_id', 'rating', 'comment', 'created_at']
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
