"""Selectors for read-only cart queries."""

from decimal import Decimal
from typing import Optional

from django.db.models import Prefetch

from .models import Cart, CartItem


def get_cart_for_user(*, user) -> Optional[Cart]:
    """Return the user's cart with lines, products and variants loaded, or None."""

    items = CartItem.objects.select_related("product", "custom_design").prefetch_related("product__variants")
    return Cart.objects.prefetch_related(Prefetch("items", queryset=items)).filter(user=user).first()


def get_cart_items(*, user) -> list[CartItem]:
    """Return the user's cart lines in position order; empty when there is no cart."""

    cart = get_cart_for_user(user=user)
    return list(cart.items.all()) if cart else []


def cart_totals(items) -> dict:
    """Sum snapshotted line prices. Shipping and discounts are applied at checkout."""

    subtotal = sum((item.line_total for item in items), Decimal("0.00"))
    return {
        "item_count": sum(int(item.quantity) for item in items),
        "subtotal": subtotal,
        "total": subtotal,
    }
