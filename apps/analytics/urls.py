"""URL routing for admin analytics endpoints."""

from django.urls import path  # type: ignore

from .views import (
    DashboardStatsView,
    RecentActivityView,
    RevenueAnalyticsView,
    SystemHealthView,
    UserAnalyticsView,
)

urlpatterns = [
    # Do not prefix with 'analytics/' here; the prefix is defined in config.urls
    path('dashboard/', DashboardStatsView.as_view(), name='analytics-dashboard'),
    path('activity/', RecentActivityView.as_view(), name='analytics-activity'),
    path('revenue/', RevenueAnalyticsView.as_view(), name='analytics-revenue'),
    path('users/', UserAnalyticsView.as_view(), name='analytics-users'),
    path('health/', SystemHealthView.as_view(), name='analytics-health'),
]
