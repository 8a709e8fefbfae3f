"""Order assembly: pure composition of an order from validated inputs.

Nothing here touches the database or the object store. The commit sequencer
in :mod:`orders.services` turns an :class:`AssembledOrder` into rows.
"""

import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from common.choices import DesignFormat, OrderStatus, PaymentMethod, PaymentStatus
from django.conf import settings
from django.utils import timezone

CENTS = Decimal("0.01")

# Paid before the order exists; everything else is collected or verified later
PREPAID_METHODS = frozenset({PaymentMethod.RAZORPAY})

SHIPPING_ADDRESS_FIELDS = ("name", "phone", "house", "street", "city", "state", "postalCode", "country")


def generate_order_number(now=None) -> str:
    """Return ``<prefix>-<year>-<5 digits>``, e.g. ``PW-2026-04213``."""
    year = (now or timezone.now()).year
    prefix = getattr(settings, "ORDER_NUMBER_PREFIX", "PW")
    return f"{prefix}-{year}-{secrets.randbelow(100000):05d}"


@dataclass(frozen=True)
class PricingPolicy:
    """Shipping rule applied to every order."""

    flat_shipping: Decimal = Decimal("0.00")

    @classmethod
    def from_settings(cls) -> "PricingPolicy":
        return cls(flat_shipping=Decimal(str(getattr(settings, "ORDER_SHIPPING_FLAT_RATE", "0.00"))))

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        return self.flat_shipping.quantize(CENTS)


@dataclass
class AssembledLine:
    product_id: int
    name: str
    size: str
    color: str
    quantity: int
    is_customized: bool
    unit_price: Decimal
    customization_fee: Decimal
    design_format: str = DesignFormat.NONE
    designs: list = field(default_factory=list)
    notes: str = ""

    @property
    def item_total(self) -> Decimal:
        return ((self.unit_price + self.customization_fee) * self.quantity).quantize(CENTS)


@dataclass
class AssembledOrder:
    order_number: str
    user: object
    lines: list[AssembledLine]
    shipping_address: dict
    payment_method: str
    payment_status: str
    status: str
    subtotal: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal
    promo_code: str = ""
    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    manual_payment_details: Optional[dict] = None

    @property
    def has_customized_items(self) -> bool:
        return any(line.is_customized for line in self.lines)


def freeze_shipping_address(address: dict) -> dict:
    """Copy the known address fields; later edits to the saved address don't reach the order."""
    return {key: str(address.get(key) or "").strip() for key in SHIPPING_ADDRESS_FIELDS}


def initial_payment_status(payment_method: str) -> str:
    return PaymentStatus.PAID if payment_method in PREPAID_METHODS else PaymentStatus.PENDING


def assemble_order(
    *,
    user,
    cart_items,
    materialized_lines,
    shipping_address: dict,
    payment_method: str,
    order_number: str,
    policy: Optional[PricingPolicy] = None,
    promo=None,
    gateway: Optional[dict] = None,
    manual_payment: Optional[dict] = None,
) -> AssembledOrder:
    """Compose an unsaved order from cart lines and their materialized designs.

    Prices come from the cart snapshot. ``promo`` is an already validated
    ``PromoResult``; its discount is clamped to the subtotal.
    """
    policy = policy or PricingPolicy.from_settings()
    lines = []
    for item, materialized in zip(cart_items, materialized_lines, strict=True):
        lines.append(
            AssembledLine(
                product_id=item.product_id,
                name=item.product.name,
                size=item.size,
                color=item.color,
                quantity=int(item.quantity),
                is_customized=bool(item.is_customized),
                unit_price=Decimal(item.unit_price),
                customization_fee=Decimal(item.customization_fee),
                design_format=materialized.format,
                designs=materialized.designs_json(),
                notes=materialized.notes,
            )
        )

    subtotal = sum((line.item_total for line in lines), Decimal("0.00"))
    shipping = policy.shipping_for(subtotal)
    discount = min(Decimal(promo.discount), subtotal).quantize(CENTS) if promo else Decimal("0.00")
    gateway = gateway or {}
    return AssembledOrder(
        order_number=order_number,
        user=user,
        lines=lines,
        shipping_address=freeze_shipping_address(shipping_address),
        payment_method=payment_method,
        payment_status=initial_payment_status(payment_method),
        status=OrderStatus.CONFIRMED,
        subtotal=subtotal,
        shipping=shipping,
        discount=discount,
        total=subtotal + shipping - discount,
        promo_code=promo.code if promo else "",
        razorpay_order_id=gateway.get("order_id", ""),
        razorpay_payment_id=gateway.get("payment_id", ""),
        manual_payment_details=manual_payment or None,
    )
