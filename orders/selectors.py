"""Read-only order queries."""

from typing import Optional

from django.db.models import QuerySet

from .models import Order


def list_orders_for_user(*, user, status: Optional[str] = None) -> QuerySet[Order]:
    """Return the user's orders, newest first, with items prefetched."""

    qs = Order.objects.filter(user=user).prefetch_related("items").order_by("-created_at", "-id")
    if status:
        qs = qs.filter(status=status)
    return qs


def get_order_for_user(*, user, order_number: str) -> Optional[Order]:
    return list_orders_for_user(user=user).filter(order_number=order_number).first()


def get_order_by_number(order_number: str) -> Optional[Order]:
    return Order.objects.prefetch_related("items").filter(order_number=order_number).first()
