"""Orders API endpoints.

Checkout, the customer's order history, customer cancellation, and the admin
status update.
"""

from django.db import transaction
from django.http import Http404
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics, status
from rest_framework import serializers as rf_serializers
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import SAFE_METHODS, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .selectors import get_order_by_number, get_order_for_user, list_orders_for_user
from .serializers import OrderAdminUpdateSerializer, OrderCreateSerializer, OrderSerializer
from .services import cancel_order_for_user, place_order, update_order_status, update_payment_status

OrderError = inline_serializer(
    name="OrderError",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)
MaterializationError = inline_serializer(
    name="OrderMaterializationError",
    fields={
        "detail": rf_serializers.CharField(),
        "code": rf_serializers.CharField(),
        "failures": rf_serializers.ListField(child=rf_serializers.CharField()),
    },
)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"


class OrderListCreateView(generics.ListAPIView):
    """List the authenticated user's orders, or place a new one from the cart.

    Filters:
    - `status`: one of the OrderStatus values
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination

    @property
    def throttle_scope(self):
        return "orders" if self.request.method in SAFE_METHODS else "orders_write"

    def get_queryset(self):
        return list_orders_for_user(user=self.request.user, status=self.request.query_params.get("status"))

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="List current user's orders, newest first.",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Orders"],
        summary="Place order",
        description=(
            "Turns the caller's cart into an order: validates stock, verifies gateway payments, applies the "
            "promo code, stores custom designs, then commits the order and clears the cart."
        ),
        request=OrderCreateSerializer,
        responses={201: OrderSerializer, 400: OrderError, 500: MaterializationError},
        examples=[
            OpenApiExample(
                "Cash on delivery",
                value={
                    "payment_method": "cod",
                    "shipping_address": {
                        "name": "Asha Rao",
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "postalCode": "560001",
                        "country": "India",
                    },
                },
                request_only=True,
            ),
            OpenApiExample(
                "Placed",
                value={"message": "Order placed successfully", "order_number": "PW-2026-04213"},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = place_order(user=request.user, **serializer.pipeline_kwargs())
        data = OrderSerializer(get_order_by_number(order.order_number), context={"request": request}).data
        return Response(
            {"message": "Order placed successfully", "order_number": order.order_number, "order": data},
            status=status.HTTP_201_CREATED,
        )


class OrderDetailView(generics.RetrieveAPIView):
    """Retrieve a single order of the authenticated user by order number."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"
    serializer_class = OrderSerializer

    def get_object(self):
        order = get_order_for_user(user=self.request.user, order_number=self.kwargs["order_number"])
        if order is None:
            raise Http404("Not found.")
        return order

    @extend_schema(tags=["Orders"], summary="Get order detail", responses={200: OrderSerializer})
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderCancelView(APIView):
    """Cancel an order while it is still pending or confirmed."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Cancel order",
        description="Customer cancellation. Confirmed orders get their stock back.",
        request=None,
        responses={200: OrderSerializer, 400: OrderError},
    )
    def post(self, request, order_number: str):
        order = cancel_order_for_user(user=request.user, order_number=order_number)
        return Response(OrderSerializer(order, context={"request": request}).data, status=status.HTTP_200_OK)


class AdminOrderUpdateView(APIView):
    """Staff update of an order's status and/or payment status."""

    permission_classes = [IsAdminUser]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Admin Orders"],
        summary="Update order status",
        description=(
            "Cancelling restores stock for orders that held it; delivering marks the payment paid; "
            "a failed payment cancels the order."
        ),
        request=OrderAdminUpdateSerializer,
        responses={200: OrderSerializer, 400: OrderError},
        examples=[OpenApiExample("Ship", value={"status": "shipped"}, request_only=True)],
    )
    def put(self, request, order_number: str):
        order = get_order_by_number(order_number)
        if order is None:
            raise Http404("Not found.")
        serializer = OrderAdminUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = f"staff:{request.user.id}"
        # Both changes land together or not at all
        with transaction.atomic():
            if serializer.validated_data.get("payment_status"):
                order = update_payment_status(order, serializer.validated_data["payment_status"], actor=actor)
            if serializer.validated_data.get("status"):
                order = update_order_status(order, serializer.validated_data["status"], actor=actor)
        order = get_order_by_number(order_number)
        return Response(OrderSerializer(order, context={"request": request}).data, status=status.HTTP_200_OK)
