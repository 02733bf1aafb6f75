"""API views for campsites, activities and equipment."""

from __future__ import annotations

import logging
import os
import uuid

from django.conf import settings  # type: ignore
from django.core.files.storage import default_storage  # type: ignore
from django.db.models import Avg, Count  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import filters, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import NotFound, ValidationError  # type: ignore
from rest_framework.parsers import FormParser, MultiPartParser  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.notifications import services as notifications
from apps.reviews import services as review_services
from apps.reviews.serializers import ReviewCreateSerializer, ReviewSerializer
from apps.users.permissions import IsAdmin, IsAdminOrReadOnly, is_admin_user
from shared.infrastructure.cache import CachedResponseMixin

from .filters import ActivityFilter, CampingSiteFilter, EquipmentFilter
from .models import Activity, CampingSite, Equipment, ResourceKind
from .serializers import (
    ActivitySerializer,
    AvailabilityQuerySerializer,
    CampingSiteSerializer,
    EquipmentSerializer,
)

logger = logging.getLogger(__name__)


class BookableViewSet(CachedResponseMixin, viewsets.ModelViewSet):
    """Shared behaviour of the catalog endpoints.

    - anyone reads, admins write
    - non-admins only see active items
    - ``categories``, ``stats``, ``availability`` and ``reviews`` actions
    """

    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    ordering_fields = ["price", "rating", "name", "created_at"]
    category_field = "category"

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if is_admin_user(self.request.user):
            return qs
        return qs.filter(status="active")

    def filter_queryset(self, queryset):  # type: ignore
        # start_date/end_date mean different things on the detail actions
        if self.action in ("availability", "reviews"):
            return queryset
        return super().filter_queryset(queryset)

    @action(detail=False, methods=["get"], permission_classes=[permissions.AllowAny])
    def categories(self, request):  # type: ignore
        model = self.queryset.model
        values = (
            model.objects.filter(status="active")
            .order_by(self.category_field)
            .values_list(self.category_field, flat=True)
            .distinct()
        )
        return Response(sorted(set(values)))

    @action(detail=False, methods=["get"], permission_classes=[IsAdmin])
    def stats(self, request):  # type: ignore
        model = self.queryset.model
        summary = model.objects.aggregate(
            total=Count("id"),
            average_price=Avg("price"),
            average_rating=Avg("rating"),
        )
        summary["by_status"] = {
            row["status"]: row["count"]
            for row in model.objects.values("status").annotate(count=Count("id")).order_by()
        }
        summary["by_category"] = {
            row[self.category_field]: row["count"]
            for row in model.objects.values(self.category_field).annotate(count=Count("id")).order_by()
        }
        return Response(summary)

    @action(detail=True, methods=["get"], permission_classes=[permissions.AllowAny])
    def availability(self, request, pk=None):  # type: ignore
        from apps.bookings import ledger, services as bookings

        resource = self.get_object()
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        period = bookings.build_period(resource, data["start_date"], data.get("end_date"))
        report = bookings.availability_report(resource, period, data["quantity"], data.get("time_slot", ""))
        if resource.reservation_kind == ResourceKind.CAMPSITE:
            report["booked_ranges"] = ledger.booked_ranges(
                ResourceKind.CAMPSITE, resource.pk, since=timezone.localdate()
            )
        return Response(report)

    @action(
        detail=True,
        methods=["get", "post"],
        permission_classes=[permissions.IsAuthenticatedOrReadOnly],
    )
    def reviews(self, request, pk=None):  # type: ignore
        resource = self.get_object()
        if request.method == "GET":
            queryset = review_services.reviews_for(resource)
            page = self.paginate_queryset(queryset)
            if page is not None:
                return self.get_paginated_response(ReviewSerializer(page, many=True).data)
            return Response(ReviewSerializer(queryset, many=True).data)

        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = review_services.add_review(request.user, resource, **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class CampingSiteViewSet(BookableViewSet):
    queryset = CampingSite.objects.all()
    serializer_class = CampingSiteSerializer
    filterset_class = CampingSiteFilter
    search_fields = ["name", "description", "location"]
    ordering_fields = BookableViewSet.ordering_fields + ["capacity"]
    cache_family = CampingSite.cache_family
    category_field = "type"

    def perform_create(self, serializer):  # type: ignore
        site = serializer.save()
        logger.info(f"Campsite {site.pk} created by {self.request.user.email}")
        notifications.notify_new_campsite(site)

    def perform_update(self, serializer):  # type: ignore
        site = serializer.save()
        logger.info(f"Campsite {site.pk} updated by {self.request.user.email}")
        notifications.notify_campsite_update(site)


class ActivityViewSet(BookableViewSet):
    queryset = Activity.objects.all()
    serializer_class = ActivitySerializer
    filterset_class = ActivityFilter
    search_fields = ["name", "description", "category"]
    cache_family = Activity.cache_family


class EquipmentViewSet(BookableViewSet):
    queryset = Equipment.objects.all()
    serializer_class = EquipmentSerializer
    filterset_class = EquipmentFilter
    search_fields = ["name", "description", "category"]
    ordering_fields = BookableViewSet.ordering_fields + ["quantity"]
    cache_family = Equipment.cache_family


class UploadImagesView(APIView):
    """Admin image upload: ``images`` (many) or ``image`` (one) multipart fields."""

    permission_classes = [IsAdmin]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):  # type: ignore
        files = request.FILES.getlist("images") or request.FILES.getlist("image")
        if not files:
            return Response({"detail": "No files were uploaded."}, status=status.HTTP_400_BAD_REQUEST)
        if len(files) > settings.UPLOAD_MAX_FILES:
            return Response(
                {"detail": f"At most {settings.UPLOAD_MAX_FILES} files per upload."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        for upload in files:
            if not (upload.content_type or "").startswith("image/"):
                return Response(
                    {"detail": f"{upload.name} is not an image."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            if upload.size > settings.UPLOAD_MAX_FILE_SIZE:
                return Response(
                    {"detail": f"{upload.name} is larger than 5 MB."},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        urls = []
        for upload in files:
            extension = os.path.splitext(upload.name)[1].lower()
            name = default_storage.save(f"{settings.UPLOAD_DIR}/{uuid.uuid4().hex}{extension}", upload)
            urls.append(request.build_absolute_uri(default_storage.url(name)))
        logger.info(f"{len(urls)} images uploaded by {request.user.email}")
        return Response({"urls": urls, "count": len(urls)}, status=status.HTTP_201_CREATED)


def _stored_file_info(request, filename: str) -> dict:
    name = f"{settings.UPLOAD_DIR}/{filename}"
    try:
        modified_at = default_storage.get_modified_time(name)
    except NotImplementedError:
        modified_at = None
    return {
        "filename": filename,
        "url": request.build_absolute_uri(default_storage.url(name)),
        "size": default_storage.size(name),
        "modified_at": modified_at,
    }


class UploadedFileListView(APIView):
    """Admin listing of everything under the upload directory, newest first."""

    permission_classes = [IsAdmin]

    def get(self, request):  # type: ignore
        try:
            _, filenames = default_storage.listdir(settings.UPLOAD_DIR)
        except FileNotFoundError:
            filenames = []
        files = [_stored_file_info(request, filename) for filename in filenames]
        files.sort(key=lambda item: item["modified_at"] or timezone.now(), reverse=True)
        return Response({"files": files, "count": len(files)})


class UploadedFileDetailView(APIView):
    permission_classes = [IsAdmin]

    def _resolve(self, filename: str) -> str:
        if filename.startswith(".") or os.path.basename(filename) != filename:
            raise ValidationError({"filename": "Invalid file name."})
        if not default_storage.exists(f"{settings.UPLOAD_DIR}/{filename}"):
            raise NotFound("File not found.")
        return filename

    def get(self, request, filename):  # type: ignore
        return Response(_stored_file_info(request, self._resolve(filename)))

    def delete(self, request, filename):  # type: ignore
        filename = self._resolve(filename)
        default_storage.delete(f"{settings.UPLOAD_DIR}/{filename}")
        logger.info(f"Upload {filename} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)
