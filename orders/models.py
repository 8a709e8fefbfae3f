from decimal import Decimal

from common.choices import DesignFormat, OrderStatus, PaymentMethod, PaymentStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Order(TimeStampedModel):
    """Committed checkout.

    Totals and line prices are computed once at creation and never recomputed.
    Only ``status`` and ``payment_status`` change afterwards.
    """

    STATUS_PENDING = OrderStatus.PENDING
    STATUS_CONFIRMED = OrderStatus.CONFIRMED
    STATUS_PROCESSING = OrderStatus.PROCESSING
    STATUS_SHIPPED = OrderStatus.SHIPPED
    STATUS_DELIVERED = OrderStatus.DELIVERED
    STATUS_CANCELLED = OrderStatus.CANCELLED
    STATUS_CHOICES = OrderStatus.choices

    order_number = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="orders", on_delete=models.CASCADE)
    shipping_address = models.JSONField(default=dict)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )
    razorpay_order_id = models.CharField(max_length=64, blank=True)
    razorpay_payment_id = models.CharField(max_length=64, blank=True)
    manual_payment_details = models.JSONField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED, db_index=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    promo_code = models.CharField(max_length=32, blank=True)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    design_assets_purged_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(name="order_total_non_negative", check=models.Q(total__gte=0)),
            models.CheckConstraint(name="order_discount_non_negative", check=models.Q(discount__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order {self.order_number} user={self.user_id} status={self.status}"

    @property
    def has_customized_items(self) -> bool:
        return any(item.is_customized for item in self.items.all())


class OrderItem(TimeStampedModel):
    """Line item within an order.

    Snapshots the product name, variant, prices and the materialized designs.
    """

    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="order_items", on_delete=models.PROTECT)
    name = models.CharField(max_length=200)
    size = models.CharField(max_length=32)
    color = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField(default=1)
    is_customized = models.BooleanField(default=False)
    design_format = models.CharField(max_length=8, choices=DesignFormat.choices, default=DesignFormat.NONE)
    designs = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    customization_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    item_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(name="orderitem_price_non_negative", check=models.Q(unit_price__gte=0)),
            models.CheckConstraint(name="orderitem_quantity_positive", check=models.Q(quantity__gte=1)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"OrderItem#{self.id} order={self.order_id} {self.name} {self.size}/{self.color} qty={self.quantity}"
