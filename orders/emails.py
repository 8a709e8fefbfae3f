"""Email utilities for the orders app.

Uses Django's email backend, with links composed from FRONTEND_URL. Mail is
skipped entirely when the SMTP backend is selected but no host is configured.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger("printworks.orders")

SMTP_BACKEND = "django.core.mail.backends.smtp.EmailBackend"


def email_configured() -> bool:
    if getattr(settings, "EMAIL_BACKEND", SMTP_BACKEND) == SMTP_BACKEND:
        return bool(getattr(settings, "EMAIL_HOST", ""))
    return True


def _order_url(order) -> str:
    frontend = getattr(settings, "FRONTEND_URL", "")
    if not frontend:
        return ""
    return f"{frontend.rstrip('/')}/profile/orders/{order.order_number}"


def _item_lines(order) -> str:
    rows = []
    for item in order.items.all():
        row = f"- {item.name} ({item.size}/{item.color}) x {item.quantity} @ ₹{item.unit_price}"
        # Fee is only shown for lines that carry one
        if item.customization_fee > 0:
            row += f" + ₹{item.customization_fee} customization"
        rows.append(f"{row} = ₹{item.item_total}")
    return "\n".join(rows)


def send_order_confirmation_email(order) -> bool:
    """Send the order confirmation to the customer. Returns True when sent."""
    to_email = getattr(order.user, "email", None)
    if not to_email:
        return False
    if not email_configured():
        logger.warning("email.skipped", extra={"event": "email.skipped", "kind": "order_confirmation"})
        return False

    url = _order_url(order)
    body = (
        "Thank you for your order!\n\n"
        f"Order: {order.order_number}\n"
        f"Payment: {order.get_payment_method_display()} ({order.payment_status})\n\n"
        f"{_item_lines(order)}\n\n"
        f"Subtotal: ₹{order.subtotal}\n"
        f"Shipping: ₹{order.shipping}\n"
    )
    if order.discount:
        body += f"Discount ({order.promo_code}): -₹{order.discount}\n"
    body += f"Total: ₹{order.total}\n"
    if url:
        body += f"\nYou can view your order here: {url}\n"

    sent = send_mail(
        f"Order confirmed: {order.order_number}",
        body,
        getattr(settings, "DEFAULT_FROM_EMAIL", None),
        [to_email],
        fail_silently=True,
    )
    return bool(sent)


def send_admin_order_notification(order) -> bool:
    """Tell the shop owner about a new order. Returns True when sent."""
    to_email = getattr(settings, "ADMIN_NOTIFICATION_EMAIL", "")
    if not to_email:
        return False
    if not email_configured():
        logger.warning("email.skipped", extra={"event": "email.skipped", "kind": "admin_order_notification"})
        return False

    address = order.shipping_address or {}
    customized = order.has_customized_items
    body = (
        f"New order {order.order_number} from {order.user.display_name} <{order.user.email}>\n\n"
        f"{_item_lines(order)}\n\n"
        f"Total: ₹{order.total}\n"
        f"Payment method: {order.get_payment_method_display()}\n"
        f"Ship to: {address.get('name', '')}, {address.get('street', '')}, {address.get('city', '')}, "
        f"{address.get('state', '')} {address.get('postalCode', '')}, {address.get('country', '')}\n"
    )
    if customized:
        body += "\nThis order contains customized items. Review the designs before printing.\n"

    sent = send_mail(
        f"{'[Customized] ' if customized else ''}New order {order.order_number}",
        body,
        getattr(settings, "DEFAULT_FROM_EMAIL", None),
        [to_email],
        fail_silently=True,
    )
    return bool(sent)
