"""API views for newsletter and contact forms."""

from __future__ import annotations

from rest_framework import generics, permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdmin
from shared.infrastructure.throttling import AuthRateThrottle

from . import services
from .models import NewsletterSubscriber
from .serializers import (
    BookingSupportSerializer,
    ContactSerializer,
    NewsletterSubscriberSerializer,
    SubscribeSerializer,
    UnsubscribeSerializer,
)


class SubscribeView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = SubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscriber, reactivated = services.subscribe(**serializer.validated_data)
        if reactivated:
            return Response(
                {"detail": "Welcome back! Your subscription has been reactivated.", "email": subscriber.email}
            )
        return Response(
            {"detail": "Successfully subscribed!", "email": subscriber.email},
            status=status.HTTP_201_CREATED,
        )


class UnsubscribeView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = UnsubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.unsubscribe(serializer.validated_data["email"])
        return Response({"detail": "Successfully unsubscribed from newsletter."})


class SubscriberListView(generics.ListAPIView):
    """Active subscribers, newest first (admin)."""

    serializer_class = NewsletterSubscriberSerializer
    permission_classes = [IsAdmin]
    queryset = NewsletterSubscriber.objects.filter(is_active=True)


class ContactView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [AuthRateThrottle]

    def post(self, request):  # type: ignore
        serializer = ContactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.submit_contact_form(**serializer.validated_data)
        return Response(
            {"submitted": True, "detail": "Thank you for contacting us! We will get back to you soon."}
        )


class BookingSupportView(APIView):
    permission_classes = [permissions.AllowAny]
    throttle_classes = [AuthRateThrottle]

    def post(self, request):  # type: ignore
        serializer = BookingSupportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.submit_booking_support(**serializer.validated_data)
        return Response(
            {"submitted": True, "detail": "Support request submitted successfully. We will get back to you soon!"}
        )
