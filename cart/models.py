"""Cart app models.

One cart per user. Lines keep the price and customization fee the product had
when the line was added; checkout re-checks stock and existence, never price.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Cart(TimeStampedModel):
    """Shopping cart bound to a user.

    A cart with no items behaves exactly like a missing cart.
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, related_name="cart", on_delete=models.CASCADE)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"Cart#{self.id} ({self.user_id})"


class CartItem(TimeStampedModel):
    """Prospective order line for a product variant (size, color)."""

    cart = models.ForeignKey(Cart, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey(
        "catalog.Product", related_name="cart_items", null=True, blank=True, on_delete=models.SET_NULL
    )
    size = models.CharField(max_length=32)
    color = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(default=1)
    position = models.PositiveIntegerField(default=0)
    is_customized = models.BooleanField(default=False)
    # At most one of these carries the line's artwork
    custom_design = models.ForeignKey(
        "designs.CustomDesign", related_name="cart_items", null=True, blank=True, on_delete=models.SET_NULL
    )
    customization_data = models.JSONField(null=True, blank=True)
    temp_designs = models.JSONField(null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    customization_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.CheckConstraint(name="cartitem_quantity_positive", check=models.Q(quantity__gte=1)),
            models.CheckConstraint(name="cartitem_price_non_negative", check=models.Q(unit_price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["cart", "position"], name="cartitem_position_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} cart={self.cart_id} product={self.product_id} {self.size}/{self.color} qty={self.quantity}"

    @property
    def line_total(self) -> Decimal:
        unit = (self.unit_price or Decimal("0.00")) + (self.customization_fee or Decimal("0.00"))
        return unit * Decimal(int(self.quantity))
