"""URL routing for the catalog."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    ActivityViewSet,
    CampingSiteViewSet,
    EquipmentViewSet,
    UploadedFileDetailView,
    UploadedFileListView,
    UploadImagesView,
)

router = DefaultRouter()
router.register(r"campsites", CampingSiteViewSet, basename="campsite")
router.register(r"activities", ActivityViewSet, basename="activity")
router.register(r"equipment", EquipmentViewSet, basename="equipment")

urlpatterns = [
    path("upload/", UploadImagesView.as_view(), name="upload-images"),
    path("upload/files/", UploadedFileListView.as_view(), name="upload-files"),
    path("upload/files/<str:filename>/", UploadedFileDetailView.as_view(), name="upload-file-detail"),
    path("", include(router.urls)),
]
