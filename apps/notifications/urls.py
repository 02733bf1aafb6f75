"""URL routing for notifications."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminNotificationViewSet, NotificationViewSet

router = DefaultRouter()
router.register(r'admin', AdminNotificationViewSet, basename='admin-notification')
router.register(r'', NotificationViewSet, basename='notification')

urlpatterns = [path('', include(router.urls))]
