import json

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Activity, CampingSite, Equipment, ResourceKind


class CharInFilter(django_filters.BaseInFilter, django_filters.CharFilter):
    """Comma separated list: ``?type=tent,cabin``."""


class BookableFilter(django_filters.FilterSet):
    price_min = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    min_rating = django_filters.NumberFilter(field_name="rating", lookup_expr="gte")


class CampingSiteFilter(BookableFilter):
    location = django_filters.CharFilter(method="filter_location")
    guests = django_filters.NumberFilter(field_name="capacity", lookup_expr="gte")
    features = django_filters.CharFilter(method="filter_features")
    type = CharInFilter(field_name="type", lookup_expr="in")
    availability = CharInFilter(field_name="availability", lookup_expr="in")
    # Only sites free for the whole stay
    start_date = django_filters.DateFilter(method="filter_free_between")
    end_date = django_filters.DateFilter(method="filter_free_between")

    class Meta:
        model = CampingSite
        fields = ["status"]

    def filter_location(self, queryset, name, value):
        return queryset.filter(
            Q(location__icontains=value)
            | Q(address__city__icontains=value)
            | Q(address__state__icontains=value)
        )

    def filter_features(self, queryset, name, value):
        # Every requested feature must be a whole element of the JSON list
        for feature in (item.strip() for item in value.split(",")):
            if feature:
                queryset = queryset.filter(features__icontains=json.dumps(feature))
        return queryset

    def filter_free_between(self, queryset, name, value):
        start = self.form.cleaned_data.get("start_date")
        end = self.form.cleaned_data.get("end_date")
        if not start or not end or end <= start or name == "end_date":
            return queryset
        from apps.bookings.ledger import busy_resource_ids
        from shared.domain.value_objects import DateRange

        return queryset.exclude(pk__in=busy_resource_ids(ResourceKind.CAMPSITE, DateRange(start, end)))


class ActivityFilter(BookableFilter):
    category = CharInFilter(field_name="category", lookup_expr="in")
    difficulty = CharInFilter(field_name="difficulty", lookup_expr="in")
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    participants = django_filters.NumberFilter(field_name="max_participants", lookup_expr="gte")

    class Meta:
        model = Activity
        fields = ["status"]


class EquipmentFilter(BookableFilter):
    category = CharInFilter(field_name="category", lookup_expr="in")
    period = CharInFilter(field_name="period", lookup_expr="in")
    condition = CharInFilter(field_name="condition", lookup_expr="in")
    availability = CharInFilter(field_name="availability", lookup_expr="in")
    quantity_min = django_filters.NumberFilter(field_name="quantity", lookup_expr="gte")

    class Meta:
        model = Equipment
        fields = ["status"]
