"""Order services: checkout pipeline, commit sequence and status changes.

``place_order`` runs the checkout in a fixed order:

1. load the server-held cart and reject an empty one
2. check every line against the catalog (no writes)
3. verify gateway payments and validate the promo code
4. materialize design payloads into stored blobs
5. assemble the order, then commit it

The commit inserts the order, publishes notifications and decrements stock in
one transaction, so a failed decrement leaves no order behind. Deleting the
cart and sending mail happen afterwards and never fail the order.
"""

import logging
from typing import Optional

from cart.selectors import get_cart_for_user
from common.choices import NotificationType, OrderStatus, PaymentMethod, PaymentStatus
from common.exceptions import EmptyCart, InvalidPromoCode, InvalidStatus, InvalidTransition, OrderPersistenceError
from designs.materializer import MaterializationResult, materialize_cart_designs
from designs.models import CustomDesign
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from inventory.services import StockIntent, decrement_stock, restore_stock, validate_cart_stock
from notifications.services import publish_new_order_notifications, publish_order_notification
from promotions.services import redeem_promo_code, validate_promo_code
from rest_framework.exceptions import NotFound

from .assembler import AssembledOrder, PricingPolicy, assemble_order, generate_order_number
from .emails import send_admin_order_notification, send_order_confirmation_email
from .models import Order, OrderItem
from .payments import verify_gateway_payment

logger = logging.getLogger("printworks.orders")

# Statuses in which the order's stock has been taken from the catalog
STOCK_HELD_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED})
FINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
CUSTOMER_CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})
# Fulfilment only moves forward; cancelled is reachable from any non-final status
FULFILMENT_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


def _max_attempts() -> int:
    return max(1, int(getattr(settings, "ORDER_NUMBER_MAX_ATTEMPTS", 5)))


def reserve_order_number() -> str:
    """Pick an order number not used yet.

    The unique constraint still decides; :func:`commit_order` retries on a
    collision that slips through.
    """
    number = generate_order_number()
    for _ in range(_max_attempts() - 1):
        if not Order.objects.filter(order_number=number).exists():
            break
        number = generate_order_number()
    return number


def place_order(
    *,
    user,
    payment_method: str,
    shipping_address: dict,
    promo_code: str = "",
    gateway: Optional[dict] = None,
    manual_payment: Optional[dict] = None,
    store=None,
    policy: Optional[PricingPolicy] = None,
) -> Order:
    """Turn the user's cart into a committed order and return it."""

    cart = get_cart_for_user(user=user)
    items = list(cart.items.all()) if cart else []
    if not items:
        raise EmptyCart()

    intents = validate_cart_stock(items)

    if payment_method == PaymentMethod.RAZORPAY:
        gateway = gateway or {}
        verify_gateway_payment(gateway.get("order_id", ""), gateway.get("payment_id", ""), gateway.get("signature", ""))

    promo = None
    if promo_code:
        try:
            promo = validate_promo_code(promo_code, sum(item.line_total for item in items))
        except NotFound as exc:
            raise InvalidPromoCode() from exc

    order_number = reserve_order_number()
    materialized = materialize_cart_designs(user, items, order_number, store=store)
    try:
        assembled = assemble_order(
            user=user,
            cart_items=items,
            materialized_lines=materialized.lines,
            shipping_address=shipping_address,
            payment_method=payment_method,
            order_number=order_number,
            policy=policy,
            promo=promo,
            gateway=gateway,
            manual_payment=manual_payment,
        )
        order = commit_order(assembled, cart=cart, intents=intents, materialized=materialized)
    except Exception:
        # Nothing references this attempt's artwork any more
        materialized.discard(store)
        raise

    _send_order_emails(order)
    return order


def commit_order(
    assembled: AssembledOrder,
    *,
    cart,
    intents: list[StockIntent],
    materialized: Optional[MaterializationResult] = None,
) -> Order:
    """Persist an assembled order.

    Insert, notifications and stock decrements share one transaction: an
    ``InsufficientStock`` from a concurrent checkout rolls the order back.
    Cart deletion runs after the commit and only logs its failures.
    """

    with transaction.atomic():
        order = _insert_order(assembled, materialized)
        publish_new_order_notifications(order, customized=assembled.has_customized_items)
        decrement_stock(intents, reference=order.order_number)
        if assembled.promo_code and not redeem_promo_code(assembled.promo_code):
            raise InvalidPromoCode("This promo code has reached its usage limit")

    logger.info(
        "order_placed",
        extra={
            "event": "order_placed",
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "total": str(order.total),
            "payment_method": order.payment_method,
            "customized": assembled.has_customized_items,
        },
    )

    if cart is not None:
        try:
            cart.delete()
        except DatabaseError:
            logger.warning(
                "cart.clear_failed",
                extra={"event": "cart.clear_failed", "order_number": order.order_number, "cart_id": cart.id},
                exc_info=True,
            )
    return order


def _insert_order(assembled: AssembledOrder, materialized: Optional[MaterializationResult]) -> Order:
    attempts = _max_attempts()
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                order = Order.objects.create(
                    order_number=assembled.order_number,
                    user=assembled.user,
                    shipping_address=assembled.shipping_address,
                    payment_method=assembled.payment_method,
                    payment_status=assembled.payment_status,
                    razorpay_order_id=assembled.razorpay_order_id,
                    razorpay_payment_id=assembled.razorpay_payment_id,
                    manual_payment_details=assembled.manual_payment_details,
                    status=assembled.status,
                    subtotal=assembled.subtotal,
                    shipping=assembled.shipping,
                    discount=assembled.discount,
                    promo_code=assembled.promo_code,
                    total=assembled.total,
                )
                OrderItem.objects.bulk_create(
                    [
                        OrderItem(
                            order=order,
                            product_id=line.product_id,
                            name=line.name,
                            size=line.size,
                            color=line.color,
                            quantity=line.quantity,
                            is_customized=line.is_customized,
                            design_format=line.design_format,
                            designs=line.designs,
                            notes=line.notes,
                            unit_price=line.unit_price,
                            customization_fee=line.customization_fee,
                            item_total=line.item_total,
                        )
                        for line in assembled.lines
                    ]
                )
            return order
        except IntegrityError as exc:
            if not Order.objects.filter(order_number=assembled.order_number).exists():
                logger.error(
                    "order.insert_failed",
                    extra={"event": "order.insert_failed", "order_number": assembled.order_number},
                    exc_info=True,
                )
                raise OrderPersistenceError() from exc
            previous = assembled.order_number
            assembled.order_number = generate_order_number()
            if materialized is not None and materialized.design_ids:
                CustomDesign.objects.filter(id__in=materialized.design_ids).update(order_number=assembled.order_number)
            logger.warning(
                "order.number_collision",
                extra={
                    "event": "order.number_collision",
                    "order_number": previous,
                    "retry_with": assembled.order_number,
                    "attempt": attempt,
                },
            )
        except DatabaseError as exc:
            logger.error(
                "order.insert_failed",
                extra={"event": "order.insert_failed", "order_number": assembled.order_number},
                exc_info=True,
            )
            raise OrderPersistenceError() from exc
    raise OrderPersistenceError("Could not allocate a unique order number")


def _send_order_emails(order: Order) -> None:
    for send in (send_order_confirmation_email, send_admin_order_notification):
        try:
            send(order)
        except Exception:  # noqa: BLE001
            logger.warning(
                "email.failed",
                extra={"event": "email.failed", "kind": send.__name__, "order_number": order.order_number},
                exc_info=True,
            )


def _log_status_change(order: Order, prev: str, actor: str) -> None:
    logger.info(
        "order_status_changed",
        extra={
            "event": "order_status_changed",
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status_from": prev,
            "status_to": order.status,
            "payment_status": order.payment_status,
            "actor": actor,
        },
    )


def _apply_status(order: Order, new_status: str) -> list[str]:
    """Move a locked order to ``new_status`` in memory and run the side effects.

    Returns the fields to save.
    """
    prev = order.status
    if prev in FINAL_STATUSES:
        raise InvalidTransition(f"Order is already {prev} and cannot be changed")
    if new_status != OrderStatus.CANCELLED and FULFILMENT_SEQUENCE.index(new_status) < FULFILMENT_SEQUENCE.index(prev):
        raise InvalidTransition(f"Order cannot move back from {prev} to {new_status}")
    fields = ["status", "updated_at"]
    if new_status == OrderStatus.CANCELLED and prev in STOCK_HELD_STATUSES:
        restore_stock(order.items.all(), reference=order.order_number)
    if new_status == OrderStatus.DELIVERED and order.payment_status != PaymentStatus.PAID:
        # Cash on delivery is collected at the door
        order.payment_status = PaymentStatus.PAID
        fields.append("payment_status")
    order.status = new_status
    return fields


def update_order_status(order: Order, new_status: str, *, actor: str = "admin") -> Order:
    """Change an order's status.

    Cancelling an order that holds stock restores it once; delivering forces
    the payment to paid. Delivered and cancelled orders are final. Setting the
    current status again is a no-op.
    """

    if new_status not in OrderStatus.values:
        raise InvalidStatus(f"Invalid status: {new_status}")
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        prev = order.status
        if new_status == prev:
            return order
        fields = _apply_status(order, new_status)
        order.save(update_fields=fields)
    _log_status_change(order, prev, actor)
    return order


def update_payment_status(order: Order, payment_status: str, *, actor: str = "admin") -> Order:
    """Change an order's payment status.

    A failed payment cancels the order (restoring stock) unless it is already
    cancelled or delivered.
    """

    if payment_status not in PaymentStatus.values:
        raise InvalidStatus(f"Invalid payment status: {payment_status}")
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.payment_status == payment_status:
            return order
        prev = order.status
        order.payment_status = payment_status
        fields = ["payment_status", "updated_at"]
        if payment_status == PaymentStatus.FAILED and order.status not in FINAL_STATUSES:
            fields = sorted(set(fields) | set(_apply_status(order, OrderStatus.CANCELLED)))
        order.save(update_fields=fields)
    logger.info(
        "order_payment_status_changed",
        extra={
            "event": "order_payment_status_changed",
            "order_id": order.id,
            "order_number": order.order_number,
            "payment_status": payment_status,
            "actor": actor,
        },
    )
    if order.status != prev:
        _log_status_change(order, prev, actor)
    return order


def cancel_order_for_user(*, user, order_number: str) -> Order:
    """Customer-initiated cancel, allowed while the order is pending or confirmed."""

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(order_number=order_number, user=user).first()
        if order is None:
            raise NotFound("Order not found")
        prev = order.status
        if prev not in CUSTOMER_CANCELLABLE_STATUSES:
            raise InvalidTransition("This order cannot be cancelled as it is already in processing or beyond")
        fields = _apply_status(order, OrderStatus.CANCELLED)
        order.save(update_fields=fields)
    _log_status_change(order, prev, "customer")
    publish_order_notification(NotificationType.ORDER_CANCELLED, order)
    return order
