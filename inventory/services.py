"""Inventory services: stock checks and atomic stock movements.

Stock lives on ``catalog.ProductVariant.stock``. Checks are read-only; the
movements are single-statement conditional updates so concurrent checkouts
can never drive stock below zero.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from catalog.models import ProductVariant
from catalog.selectors import find_variant, get_products_by_ids
from common.exceptions import InsufficientStock, ProductNotFound, VariantNotFound
from django.db.models import F
from django.utils import timezone

logger = logging.getLogger("printworks.orders")


@dataclass(frozen=True)
class StockIntent:
    """A pending stock decrement for one cart line."""

    product_id: int
    variant_id: int
    size: str
    color: str
    quantity: int


def validate_cart_stock(items: Iterable) -> list[StockIntent]:
    """Check every cart line against authoritative catalog data.

    ``items`` are cart lines exposing ``product_id``, ``size``, ``color`` and
    ``quantity``. Lines are checked in order and the first problem raises
    ``ProductNotFound``, ``VariantNotFound`` or ``InsufficientStock``.
    Demand is accumulated per variant, so two lines for the same variant
    cannot jointly exceed its stock. Nothing is written.
    """

    items = list(items)
    products = get_products_by_ids(item.product_id for item in items if item.product_id)
    demand: dict[int, int] = {}
    intents = []
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise ProductNotFound(item.product_id)
        variant = find_variant(product, size=item.size, color=item.color)
        if variant is None:
            raise VariantNotFound(product.name, item.size, item.color)
        demand[variant.id] = demand.get(variant.id, 0) + int(item.quantity)
        if variant.stock < demand[variant.id]:
            raise InsufficientStock(product.name, item.size, item.color, variant.stock)
        intents.append(
            StockIntent(
                product_id=product.id,
                variant_id=variant.id,
                size=variant.size,
                color=variant.color,
                quantity=int(item.quantity),
            )
        )
    return intents


def decrement_stock(intents: Iterable[StockIntent], *, reference: str = "") -> None:
    """Apply stock decrements, each guarded by ``stock >= quantity``.

    Raises ``InsufficientStock`` on the first decrement that cannot be applied.
    Callers run this inside ``transaction.atomic`` so earlier decrements roll
    back with the failure.
    """

    for intent in intents:
        updated = ProductVariant.objects.filter(id=intent.variant_id, stock__gte=intent.quantity).update(
            stock=F("stock") - intent.quantity, updated_at=timezone.now()
        )
        if updated:
            continue
        variant = ProductVariant.objects.select_related("product").filter(id=intent.variant_id).first()
        available = variant.stock if variant else 0
        name = variant.product.name if variant else str(intent.product_id)
        logger.warning(
            "stock.decrement_rejected",
            extra={
                "event": "stock.decrement_rejected",
                "variant_id": intent.variant_id,
                "requested": intent.quantity,
                "available": available,
                "reference": reference,
            },
        )
        raise InsufficientStock(name, intent.size, intent.color, available)


def restore_stock(lines: Iterable, *, reference: str = "") -> int:
    """Credit ordered quantities back to their variants.

    ``lines`` expose ``product_id``, ``size``, ``color`` and ``quantity``.
    Variants are matched by product + size + color; lines whose variant has
    since been removed are skipped. Returns the number of variants credited.
    """

    restored = 0
    for line in lines:
        updated = ProductVariant.objects.filter(product_id=line.product_id, size=line.size, color=line.color).update(
            stock=F("stock") + int(line.quantity), updated_at=timezone.now()
        )
        if not updated:
            logger.warning(
                "stock.restore_skipped",
                extra={
                    "event": "stock.restore_skipped",
                    "product_id": line.product_id,
                    "size": line.size,
                    "color": line.color,
                    "reference": reference,
                },
            )
        restored += updated
    return restored
