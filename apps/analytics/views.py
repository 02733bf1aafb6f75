"""API views for the admin dashboard and health checks."""

from __future__ import annotations

import structlog
from django.core.cache import cache  # type: ignore
from django.db import DatabaseError, connection  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdmin

from . import services

logger = structlog.get_logger(__name__)


def _database_ok() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as exc:
        logger.error("health.database_fail", error=str(exc))
        return False
    return True


def _cache_ok() -> bool:
    key = "health:ping"
    try:
        cache.set(key, "pong", 10)
        return cache.get(key) == "pong"
    except Exception as exc:
        logger.error("health.cache_fail", error=str(exc))
        return False


class DashboardStatsView(APIView):
    """Counts across users, catalog and reservations."""

    permission_classes = [IsAdmin]

    def get(self, request, format=None):  # type: ignore
        return Response(services.dashboard_stats())


class RecentActivityView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request, format=None):  # type: ignore
        try:
            limit = max(1, min(int(request.query_params.get("limit", 10)), 50))
        except ValueError:
            return Response({"detail": "limit must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(services.recent_activity(limit))


class RevenueAnalyticsView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request, format=None):  # type: ignore
        period = request.query_params.get("period", "30d")
        if period not in services.REVENUE_PERIODS:
            return Response(
                {"detail": f"period must be one of {', '.join(services.REVENUE_PERIODS)}."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(services.revenue_analytics(period))


class UserAnalyticsView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request, format=None):  # type: ignore
        return Response(services.user_analytics())


class SystemHealthView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request, format=None):  # type: ignore
        database, cache_ok = _database_ok(), _cache_ok()
        return Response(
            {
                "status": "healthy" if database and cache_ok else "degraded",
                "database": "connected" if database else "unreachable",
                "cache": "connected" if cache_ok else "unreachable",
                "timestamp": timezone.now(),
            }
        )


class HealthView(APIView):
    """Health check endpoint for load balancers and containers."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []
    throttle_classes: list = []

    def get(self, request, format=None):  # type: ignore
        if not _database_ok():
            return Response(
                {"status": "unhealthy", "database": "unreachable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        logger.info("health.ok", database="connected")
        return Response({"status": "healthy", "database": "connected", "timestamp": timezone.now()})
