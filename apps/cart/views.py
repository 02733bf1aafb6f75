"""API views for the persistent cart."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from . import services
from .serializers import (
    CartItemInputSerializer,
    CartItemQuantitySerializer,
    CartMigrateSerializer,
    CartSerializer,
    CheckoutResultSerializer,
)


class CartViewSet(viewsets.ViewSet):
    """
    The authenticated user's cart.

    Endpoints:
    - GET /api/v1/cart/ - cart with summary
    - POST /api/v1/cart/items/ - add or replace an item
    - PATCH /api/v1/cart/items/{id}/ - change quantity
    - DELETE /api/v1/cart/items/{id}/ - remove an item
    - POST /api/v1/cart/clear/ - empty the cart
    - POST /api/v1/cart/migrate/ - merge a client-side cart
    - POST /api/v1/cart/quote/ - price one item without storing it
    - GET /api/v1/cart/summary/ - totals only
    - POST /api/v1/cart/checkout/ - pay and book everything
    """

    permission_classes = [permissions.IsAuthenticated]

    def _cart_response(self, cart, status_code=status.HTTP_200_OK) -> Response:
        return Response(CartSerializer(cart).data, status=status_code)

    def list(self, request):  # type: ignore
        return self._cart_response(services.get_cart(request.user))

    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request):  # type: ignore
        serializer = CartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = services.add_item(request.user, serializer.validated_data)
        return self._cart_response(cart, status.HTTP_201_CREATED)

    @action(detail=False, methods=["patch", "delete"], url_path=r"items/(?P<item_id>[\w\-]+)")
    def item(self, request, item_id=None):  # type: ignore
        if request.method == "DELETE":
            return self._cart_response(services.remove_item(request.user, item_id))
        serializer = CartItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = services.update_item(request.user, item_id, serializer.validated_data["quantity"])
        return self._cart_response(cart)

    @action(detail=False, methods=["post", "delete"])
    def clear(self, request):  # type: ignore
        return self._cart_response(services.clear_cart(request.user))

    @action(detail=False, methods=["post"])
    def migrate(self, request):  # type: ignore
        serializer = CartMigrateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart, added, errors = services.migrate_cart(request.user, serializer.validated_data["items"])
        data = CartSerializer(cart).data
        data["migrated"] = added
        data["errors"] = errors
        return Response(data)

    @action(detail=False, methods=["post"])
    def quote(self, request):  # type: ignore
        serializer = CartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(services.price_item(serializer.validated_data))

    @action(detail=False, methods=["get"])
    def summary(self, request):  # type: ignore
        return Response(services.summarize(services.get_cart(request.user).items))

    @action(detail=False, methods=["post"])
    def checkout(self, request):  # type: ignore
        result = services.checkout(request.user)
        return Response(CheckoutResultSerializer(result).data, status=status.HTTP_201_CREATED)
