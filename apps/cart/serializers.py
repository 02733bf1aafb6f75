"""Serializers for the cart API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import ReservationSerializer
from apps.catalog.models import ResourceKind
from apps.catalog.serializers import TIME_PATTERN

from .models import Cart


class CartItemInputSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=ResourceKind.choices)
    resource_id = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    time_slot = serializers.RegexField(TIME_PATTERN, required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        end_date = attrs.get("end_date")
        if end_date is not None and end_date <= attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        return attrs


class CartItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class CartMigrateSerializer(serializers.Serializer):
    items = CartItemInputSerializer(many=True)


class CartSerializer(serializers.ModelSerializer):
    summary = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ["items", "summary", "updated_at"]

    def get_summary(self, obj: Cart):  # type: ignore
        from .services import summarize

        return summarize(obj.items)


class CheckoutResultSerializer(serializers.Serializer):
    transaction_id = serializers.CharField()
    payment_status = serializers.CharField()
    reservations = ReservationSerializer(many=True)
    summary = serializers.DictField()
