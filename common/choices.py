"""Shared enumerations and choices used across apps."""

from django.db import models


class ProductCategory(models.TextChoices):
    TSHIRT = "t-shirt", "T-Shirt"
    SHIRT = "shirt", "Shirt"
    MUG = "mug", "Mug"
    BOTTLE = "bottle", "Bottle"


class DesignStatus(models.TextChoices):
    """Review states for uploaded custom designs."""

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class DesignFormat(models.TextChoices):
    """How an order line's artwork was supplied at checkout."""

    VIEWS = "views", "Numbered views"
    NAMED = "named", "Named areas"
    NONE = "none", "None"


class OrderStatus(models.TextChoices):
    """Lifecycle statuses for orders."""

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


class PaymentMethod(models.TextChoices):
    """Closed set of checkout payment methods."""

    RAZORPAY = "razorpay", "Online (Razorpay)"
    COD = "cod", "Cash on delivery"
    MANUAL_UPI = "manual_upi", "Manual UPI"
    MANUAL_QR = "manual_qr", "Manual QR"


class NotificationType(models.TextChoices):
    NEW_ORDER = "new_order", "New order"
    CUSTOMIZED_ORDER = "customized_order", "Customized order"
    ORDER_CANCELLED = "order_cancelled", "Order cancelled"


class DiscountType(models.TextChoices):
    PERCENTAGE = "percentage", "Percentage"
    FIXED = "fixed", "Fixed amount"
