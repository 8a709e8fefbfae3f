"""Promo code validation and redemption."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from common.choices import DiscountType
from common.exceptions import InvalidPromoCode
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound

from .models import PromoCode

logger = logging.getLogger("printworks.orders")

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PromoResult:
    code: str
    discount: Decimal
    description: str = ""


def validate_promo_code(code: str, order_value) -> PromoResult:
    """Compute the discount ``code`` grants on ``order_value``.

    Raises ``NotFound`` for unknown or inactive codes and ``InvalidPromoCode``
    when the code exists but cannot be applied. The discount never exceeds
    the order value.
    """
    order_value = Decimal(str(order_value))
    promo = PromoCode.objects.filter(code=(code or "").strip().upper(), is_active=True).first()
    if promo is None:
        raise NotFound("Invalid promo code")

    now = timezone.now()
    if now < promo.valid_from or now > promo.valid_until:
        raise InvalidPromoCode("This promo code has expired or is not yet valid")
    if promo.used_count >= promo.usage_limit:
        raise InvalidPromoCode("This promo code has reached its usage limit")
    if order_value < promo.min_order_value:
        raise InvalidPromoCode(f"Minimum order value of ₹{promo.min_order_value} required")

    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = order_value * promo.discount_value / Decimal("100")
        if promo.max_discount and promo.max_discount > 0 and discount > promo.max_discount:
            discount = promo.max_discount
    else:
        discount = promo.discount_value
    discount = min(discount, order_value).quantize(CENTS, rounding=ROUND_HALF_UP)
    return PromoResult(code=promo.code, discount=discount, description=promo.description)


def redeem_promo_code(code: str) -> bool:
    """Count one use of ``code``; False once the usage limit has been reached."""
    updated = PromoCode.objects.filter(code=code, used_count__lt=F("usage_limit")).update(
        used_count=F("used_count") + 1
    )
    if not updated:
        logger.warning("promo.redeem_rejected", extra={"event": "promo.redeem_rejected", "promo_code": code})
    return bool(updated)
