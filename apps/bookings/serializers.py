"""Serializers for the reservation ledger."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.catalog.models import ResourceKind
from apps.catalog.serializers import TIME_PATTERN
from apps.users.serializers import UserSummarySerializer

from .models import Reservation


class ReservationDetailsSerializer(serializers.Serializer):
    """Extras attached to a campsite stay."""

    equipment = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    activities = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    arrival_time = serializers.RegexField(TIME_PATTERN, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ReservationCreateSerializer(serializers.Serializer):
    """Input for a new reservation of any resource kind."""

    kind = serializers.ChoiceField(choices=ResourceKind.choices)
    resource_id = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False)
    quantity = serializers.IntegerField(min_value=1, default=1)
    time_slot = serializers.RegexField(TIME_PATTERN, required=False, allow_blank=True, default="")
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    details = ReservationDetailsSerializer(required=False)

    def validate(self, attrs):  # type: ignore
        kind = attrs["kind"]
        if kind != ResourceKind.ACTIVITY and "end_date" not in attrs:
            raise serializers.ValidationError({"end_date": "This field is required."})
        if "end_date" in attrs and attrs["end_date"] <= attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        if kind == ResourceKind.ACTIVITY and not attrs.get("time_slot"):
            raise serializers.ValidationError({"time_slot": "A time slot is required for activities."})
        if kind != ResourceKind.CAMPSITE and attrs.get("details"):
            raise serializers.ValidationError({"details": "Extras can only be added to campsite bookings."})
        return attrs


class ReservationUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    quantity = serializers.IntegerField(min_value=1, required=False)
    time_slot = serializers.RegexField(TIME_PATTERN, required=False)
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ReservationSerializer(serializers.ModelSerializer):
    """Read representation of a reservation."""

    user = UserSummarySerializer(read_only=True)
    duration = serializers.IntegerField(read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "reference",
            "user",
            "kind",
            "resource_id",
            "resource_name",
            "start_date",
            "end_date",
            "time_slot",
            "duration",
            "quantity",
            "unit_price",
            "total_price",
            "currency",
            "status",
            "payment_status",
            "refund_amount",
            "source",
            "special_requests",
            "details",
            "admin_notes",
            "rejection_reason",
            "decided_at",
            "cancelled_at",
            "paid_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ApproveSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class AvailabilityCheckSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=ResourceKind.choices)
    resource_id = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False)
    quantity = serializers.IntegerField(min_value=1, default=1)
    time_slot = serializers.RegexField(TIME_PATTERN, required=False, allow_blank=True, default="")
