"""Notification sink for admin-facing order alerts.

Publishing is a side channel: callers get a bool back and are never handed an
exception, so a broken sink cannot fail the order that triggered it.
"""

import logging

from common.choices import NotificationType
from django.db import DatabaseError, transaction

from .models import Notification

logger = logging.getLogger("printworks.orders")

TITLES = {
    NotificationType.NEW_ORDER: "New Order",
    NotificationType.CUSTOMIZED_ORDER: "Customized Order",
    NotificationType.ORDER_CANCELLED: "Order Cancelled",
}


def _message(type_: str, order) -> str:
    total = f"₹{order.total:.2f}"
    if type_ == NotificationType.CUSTOMIZED_ORDER:
        return f"Order {order.order_number} contains customized items that need design review."
    if type_ == NotificationType.ORDER_CANCELLED:
        return f"Order {order.order_number} has been cancelled by customer. Total: {total}"
    return f"New order {order.order_number} placed. Total: {total}"


def publish_order_notification(type_: str, order, *, message: str | None = None) -> bool:
    """Record a notification for ``order``. Returns False when it could not be stored."""
    try:
        # Savepoint keeps a failed insert from poisoning an enclosing transaction
        with transaction.atomic():
            Notification.objects.create(
                type=type_,
                title=TITLES.get(type_, str(type_)),
                message=message or _message(type_, order),
                order_id=order.id,
                order_number=order.order_number,
                is_read=False,
            )
    except (DatabaseError, ValueError):
        logger.warning(
            "notification.publish_failed",
            extra={"event": "notification.publish_failed", "type": str(type_), "order_number": order.order_number},
            exc_info=True,
        )
        return False
    return True


def publish_new_order_notifications(order, *, customized: bool) -> None:
    publish_order_notification(NotificationType.NEW_ORDER, order)
    if customized:
        publish_order_notification(NotificationType.CUSTOMIZED_ORDER, order)
