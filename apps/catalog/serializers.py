"""Serializers for catalog resources."""

from __future__ import annotations

import re

from rest_framework import serializers  # type: ignore

from .models import Activity, CampingSite, Equipment

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
WEEKDAYS = {"monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"}
READ_ONLY = ["id", "rating", "review_count", "created_at", "updated_at"]


def _validate_string_list(value, field: str):
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise serializers.ValidationError(f"{field} must be a list of strings.")
    return [item.strip() for item in value if item.strip()]


class CampingSiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = CampingSite
        fields = [
            "id",
            "name",
            "location",
            "price",
            "rating",
            "review_count",
            "description",
            "features",
            "image",
            "images",
            "capacity",
            "availability",
            "type",
            "coordinates",
            "address",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = READ_ONLY

    def validate_features(self, value):  # type: ignore
        return _validate_string_list(value, "features")

    def validate_images(self, value):  # type: ignore
        return _validate_string_list(value, "images")

    def validate_coordinates(self, value):  # type: ignore
        if value in (None, {}):
            return None
        try:
            lat, lng = float(value["lat"]), float(value["lng"])
        except (KeyError, TypeError, ValueError):
            raise serializers.ValidationError("Coordinates need numeric lat and lng.")
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise serializers.ValidationError("Coordinates out of range.")
        return {"lat": lat, "lng": lng}

    def validate_address(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Address must be an object.")
        allowed = {"street", "city", "state", "zip_code"}
        unknown = set(value) - allowed
        if unknown:
            raise serializers.ValidationError(f"Unknown address fields: {', '.join(sorted(unknown))}.")
        return {key: str(val).strip() for key, val in value.items()}


class ActivitySerializer(serializers.ModelSerializer):
    class Meta:
        model = Activity
        fields = [
            "id",
            "name",
            "icon",
            "description",
            "duration",
            "difficulty",
            "price",
            "category",
            "max_participants",
            "equipment",
            "rating",
            "review_count",
            "images",
            "location",
            "schedule",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = READ_ONLY

    def validate_equipment(self, value):  # type: ignore
        return _validate_string_list(value, "equipment")

    def validate_images(self, value):  # type: ignore
        return _validate_string_list(value, "images")

    def validate_schedule(self, value):  # type: ignore
        if not isinstance(value, list):
            raise serializers.ValidationError("Schedule must be a list.")
        cleaned = []
        for entry in value:
            if not isinstance(entry, dict):
                raise serializers.ValidationError("Each schedule entry must be an object.")
            start, end = entry.get("start_time", ""), entry.get("end_time", "")
            if not isinstance(start, str) or not isinstance(end, str):
                raise serializers.ValidationError("Schedule times must be strings.")
            if not TIME_PATTERN.match(start) or not TIME_PATTERN.match(end):
                raise serializers.ValidationError("Schedule times must use HH:MM.")
            if start >= end:
                raise serializers.ValidationError("Schedule end_time must be after start_time.")
            raw_days = entry.get("days", [])
            if not isinstance(raw_days, list):
                raise serializers.ValidationError("Schedule days must be a list.")
            days = [str(day).lower() for day in raw_days]
            if set(days) - WEEKDAYS:
                raise serializers.ValidationError("Schedule days must be weekday names.")
            cleaned.append({"start_time": start, "end_time": end, "days": days})
        return cleaned


class EquipmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Equipment
        fields = [
            "id",
            "name",
            "category",
            "price",
            "period",
            "description",
            "features",
            "image",
            "availability",
            "quantity",
            "condition",
            "specifications",
            "maintenance",
            "rating",
            "review_count",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = READ_ONLY + ["availability"]

    def validate_features(self, value):  # type: ignore
        return _validate_string_list(value, "features")

    def validate_specifications(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Specifications must be an object.")
        return value

    def validate_maintenance(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Maintenance must be an object.")
        return value


class AvailabilityQuerySerializer(serializers.Serializer):
    """Query parameters of the availability endpoints."""

    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False)
    quantity = serializers.IntegerField(min_value=1, default=1)
    time_slot = serializers.RegexField(TIME_PATTERN, required=False, allow_blank=True)
