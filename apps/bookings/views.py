"""API views for the reservation ledger."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import filters, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsAdmin, is_admin_user

from . import services
from .models import Reservation
from .serializers import (
    ApproveSerializer,
    AvailabilityCheckSerializer,
    RejectSerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
    ReservationUpdateSerializer,
)


class ReservationViewSet(viewsets.ModelViewSet):
    """Reservations of campsites, activities and equipment.

    Users see and manage their own reservations; admins see everyone's
    (``?mine=true`` narrows to their own) and decide on pending ones.
    """

    serializer_class = ReservationSerializer
    queryset = Reservation.objects.select_related("user").all()
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["status", "kind", "payment_status", "resource_id"]
    ordering_fields = ["created_at", "start_date", "total_price"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if not is_admin_user(user) or self.request.query_params.get("mine") in ("1", "true"):
            return qs.filter(user=user)
        user_id = self.request.query_params.get("user")
        if user_id and user_id.isdigit():
            qs = qs.filter(user_id=int(user_id))
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        if self.action in ("update", "partial_update"):
            return ReservationUpdateSerializer
        return ReservationSerializer

    def _read(self, reservation: Reservation, status_code=status.HTTP_200_OK) -> Response:
        return Response(
            ReservationSerializer(reservation, context=self.get_serializer_context()).data,
            status=status_code,
        )

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        resource = services.resolve_resource(data["kind"], data["resource_id"])
        period = services.build_period(resource, data["start_date"], data.get("end_date"))
        reservation = services.create_reservation(
            request.user,
            resource,
            period,
            data["quantity"],
            time_slot=data.get("time_slot", ""),
            special_requests=data.get("special_requests", ""),
            details=data.get("details") or {},
        )
        return self._read(reservation, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        reservation = self.get_object()
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        reservation = services.update_reservation(reservation, request.user, **serializer.validated_data)
        return self._read(reservation)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        services.delete_reservation(self.get_object(), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch", "post"], permission_classes=[IsAdmin])
    def approve(self, request, pk=None):  # type: ignore
        serializer = ApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = services.approve_reservation(
            self.get_object(), request.user, serializer.validated_data["admin_notes"]
        )
        return self._read(reservation)

    @action(detail=True, methods=["patch", "post"], permission_classes=[IsAdmin])
    def reject(self, request, pk=None):  # type: ignore
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = services.reject_reservation(
            self.get_object(), request.user, serializer.validated_data["reason"]
        )
        return self._read(reservation)

    @action(detail=True, methods=["patch", "post"], permission_classes=[IsAdmin])
    def complete(self, request, pk=None):  # type: ignore
        return self._read(services.complete_reservation(self.get_object(), request.user))

    @action(detail=True, methods=["patch", "post"])
    def cancel(self, request, pk=None):  # type: ignore
        return self._read(services.cancel_reservation(self.get_object(), request.user))

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):  # type: ignore
        return self._read(services.pay_reservation(self.get_object(), request.user))

    @action(detail=True, methods=["get"])
    def receipt(self, request, pk=None):  # type: ignore
        return Response(services.receipt(self.get_object()))

    @action(detail=False, methods=["get"], permission_classes=[IsAdmin])
    def stats(self, request):  # type: ignore
        return Response(services.reservation_stats())

    @action(
        detail=False,
        methods=["get", "post"],
        url_path="check-availability",
        permission_classes=[permissions.AllowAny],
    )
    def check_availability(self, request):  # type: ignore
        source = request.data if request.method == "POST" else request.query_params
        serializer = AvailabilityCheckSerializer(data=source)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        resource = services.resolve_resource(data["kind"], data["resource_id"])
        period = services.build_period(resource, data["start_date"], data.get("end_date"))
        return Response(
            services.availability_report(resource, period, data["quantity"], data.get("time_slot", ""))
        )
