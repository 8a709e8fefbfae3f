"""DRF views for cart operations.

The storefront addresses lines by their index in the cart, so one resource
handles read, add, quantity update and removal.
"""

from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .selectors import get_cart_for_user
from .serializers import (
    AddItemSerializer,
    CartReadSerializer,
    UpdateCustomizationSerializer,
    UpdateItemQuantitySerializer,
)
from .services import add_item, clear_cart, remove_item, set_item_quantity, update_item_customization

CartMessage = inline_serializer(name="CartMessage", fields={"message": rf_serializers.CharField()})
CartError = inline_serializer(
    name="CartError", fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()}
)


def _cart_response(user, *, message: str, code: int = status.HTTP_200_OK) -> Response:
    data = CartReadSerializer.from_cart(cart=get_cart_for_user(user=user)).data
    return Response({"message": message, "cart": data}, status=code)


class CartView(APIView):
    """The authenticated user's cart."""

    permission_classes = [IsAuthenticated]

    @property
    def throttle_scope(self):
        return "cart" if self.request.method in SAFE_METHODS else "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description="Returns the cart lines enriched with product data, plus totals. A missing cart is returned as empty.",
        responses={200: CartReadSerializer},
        examples=[
            OpenApiExample(
                "Cart",
                value={
                    "items": [
                        {
                            "index": 0,
                            "product": {"id": 1, "name": "Classic Tee", "slug": "classic-tee"},
                            "size": "M",
                            "color": "Red",
                            "quantity": 2,
                            "unit_price": "500.00",
                            "customization_fee": "0.00",
                            "line_total": "1000.00",
                        }
                    ],
                    "item_count": 2,
                    "subtotal": "1000.00",
                    "total": "1000.00",
                },
            )
        ],
    )
    def get(self, request):
        cart = get_cart_for_user(user=request.user)
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add line to cart",
        description="Adds a product variant. Price and customization fee are copied from the product.",
        request=AddItemSerializer,
        responses={201: CartMessage, 400: CartError},
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        add_item(user=request.user, **serializer.validated_data)
        return _cart_response(request.user, message="Item added to cart", code=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Set line quantity",
        description="Sets the quantity of the line at item_index. Zero or less removes the line.",
        request=UpdateItemQuantitySerializer,
        responses={200: CartMessage, 400: CartError},
    )
    def put(self, request):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        set_item_quantity(
            user=request.user,
            index=serializer.validated_data["item_index"],
            quantity=serializer.validated_data["quantity"],
        )
        return _cart_response(request.user, message="Cart updated")

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Remove line or clear cart",
        parameters=[
            OpenApiParameter(
                name="itemIndex",
                required=False,
                type=int,
                location=OpenApiParameter.QUERY,
                description="Line to remove. Without it the whole cart is deleted.",
            )
        ],
        responses={200: CartMessage, 400: CartError},
    )
    def delete(self, request):
        raw = request.query_params.get("itemIndex")
        if raw is None:
            clear_cart(user=request.user)
            return _cart_response(request.user, message="Cart cleared")
        try:
            index = int(raw)
        except ValueError:
            return Response({"detail": "itemIndex must be an integer", "code": "invalid"}, status=status.HTTP_400_BAD_REQUEST)
        remove_item(user=request.user, index=index)
        return _cart_response(request.user, message="Cart updated")


class CartCustomizationView(APIView):
    """Replace the customization workspace data of one cart line."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update line customization",
        request=UpdateCustomizationSerializer,
        responses={200: CartMessage, 400: CartError},
    )
    def put(self, request):
        serializer = UpdateCustomizationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update_item_customization(
            user=request.user,
            index=serializer.validated_data["item_index"],
            customization_data=serializer.validated_data["customization_data"],
        )
        return _cart_response(request.user, message="Customization updated successfully")
