"""Catalog app models.

Products carry their printable variants inline. Variant stock is the one
catalog field the order pipeline writes back: decremented when an order is
placed and restored when an order is cancelled.
"""

from decimal import Decimal

from common.choices import ProductCategory
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Blank product that customers buy plain or with their own artwork."""

    CATEGORY_CHOICES = ProductCategory.choices

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=16, choices=CATEGORY_CHOICES, db_index=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    customization_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    images = models.JSONField(default=list, blank=True)
    allow_customization = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(name="product_base_price_non_negative", check=models.Q(base_price__gte=0)),
            models.CheckConstraint(
                name="product_customization_fee_non_negative", check=models.Q(customization_fee__gte=0)
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class ProductVariant(TimeStampedModel):
    """Size/color combination of a product with its own stock level."""

    product = models.ForeignKey(Product, related_name="variants", on_delete=models.CASCADE)
    size = models.CharField(max_length=32)
    color = models.CharField(max_length=64)
    stock = models.PositiveIntegerField(default=0)
    sku = models.CharField(max_length=64, unique=True)

    class Meta:
        ordering = ["product_id", "size", "color"]
        constraints = [
            models.UniqueConstraint(fields=["product", "size", "color"], name="unique_size_color_per_product"),
            models.CheckConstraint(name="variant_stock_non_negative", check=models.Q(stock__gte=0)),
        ]
        indexes = [
            models.Index(fields=["product", "size", "color"], name="variant_lookup_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product.name} [{self.size}/{self.color}]"
