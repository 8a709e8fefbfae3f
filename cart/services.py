"""Cart services: line mutations addressed by position.

Lines are addressed by their zero-based index in the cart, as the storefront
does. Positions stay contiguous after every removal.
"""

import logging
from typing import Optional

from catalog.models import Product
from catalog.selectors import find_variant
from common.exceptions import ProductNotFound, ValidationError, VariantNotFound
from designs.models import CustomDesign
from django.db import transaction
from django.db.models import F

from .models import Cart, CartItem

logger = logging.getLogger("printworks.cart")


class CartItemNotFound(ValidationError):
    default_detail = "Cart item not found"
    default_code = "cart_item_not_found"


def _get_or_create_cart(user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _item_at(cart: Optional[Cart], index: int) -> CartItem:
    if cart is None or index < 0:
        raise CartItemNotFound()
    found = list(CartItem.objects.select_for_update().filter(cart=cart).order_by("position", "id")[index : index + 1])
    if not found:
        raise CartItemNotFound()
    return found[0]


def _renumber(cart: Cart) -> None:
    for position, item in enumerate(cart.items.order_by("position", "id")):
        if item.position != position:
            CartItem.objects.filter(id=item.id).update(position=position)


def _touch(cart: Cart) -> None:
    # auto_now only fires on save()
    cart.save(update_fields=["updated_at"])


@transaction.atomic
def add_item(
    *,
    user,
    product_id: int,
    size: str,
    color: str,
    quantity: int,
    is_customized: bool = False,
    custom_design_id: Optional[int] = None,
    customization_data: Optional[dict] = None,
    temp_designs: Optional[dict] = None,
) -> CartItem:
    """Add a line, snapshotting the product's price and customization fee.

    A plain (uncustomized) line for a product and variant already in the cart
    has its quantity increased instead. Customized lines are always appended.
    """

    if quantity <= 0:
        raise ValidationError("Quantity must be positive")
    product = Product.objects.prefetch_related("variants").filter(id=product_id, is_active=True).first()
    if product is None:
        raise ProductNotFound(product_id)
    if find_variant(product, size=size, color=color) is None:
        raise VariantNotFound(product.name, size, color)
    if is_customized and not product.allow_customization:
        raise ValidationError(f"{product.name} cannot be customized", code="customization_not_allowed")
    custom_design = None
    if custom_design_id is not None:
        custom_design = CustomDesign.objects.filter(id=custom_design_id, user=user).first()
        if custom_design is None:
            raise ValidationError("Design not found", code="design_not_found")

    cart = _get_or_create_cart(user)
    if not is_customized:
        existing = (
            CartItem.objects.select_for_update()
            .filter(cart=cart, product=product, size=size, color=color, is_customized=False)
            .first()
        )
        if existing is not None:
            CartItem.objects.filter(id=existing.id).update(quantity=F("quantity") + quantity)
            existing.refresh_from_db(fields=["quantity"])
            _touch(cart)
            logger.info(
                "cart.item_updated",
                extra={
                    "event": "cart.item_updated",
                    "cart_id": cart.id,
                    "user_id": user.id,
                    "product_id": product.id,
                    "quantity": existing.quantity,
                },
            )
            return existing

    item = CartItem.objects.create(
        cart=cart,
        product=product,
        size=size,
        color=color,
        quantity=quantity,
        position=cart.items.count(),
        is_customized=is_customized,
        custom_design=custom_design,
        customization_data=customization_data if is_customized else None,
        temp_designs=temp_designs if is_customized else None,
        unit_price=product.base_price,
        customization_fee=product.customization_fee if is_customized else 0,
    )
    _touch(cart)
    logger.info(
        "cart.item_added",
        extra={
            "event": "cart.item_added",
            "cart_id": cart.id,
            "user_id": user.id,
            "product_id": product.id,
            "quantity": quantity,
            "customized": is_customized,
        },
    )
    return item


@transaction.atomic
def set_item_quantity(*, user, index: int, quantity: int) -> Optional[CartItem]:
    """Set the quantity of the line at ``index``; zero or less removes it.

    Returns the updated line, or None when it was removed.
    """

    if quantity <= 0:
        remove_item(user=user, index=index)
        return None
    cart = Cart.objects.filter(user=user).first()
    item = _item_at(cart, index)
    item.quantity = quantity
    item.save(update_fields=["quantity", "updated_at"])
    _touch(cart)
    logger.info(
        "cart.item_updated",
        extra={"event": "cart.item_updated", "cart_id": cart.id, "user_id": user.id, "quantity": quantity},
    )
    return item


@transaction.atomic
def remove_item(*, user, index: int) -> None:
    """Remove the line at ``index``. Unknown indexes are ignored."""

    cart = Cart.objects.filter(user=user).first()
    try:
        item = _item_at(cart, index)
    except CartItemNotFound:
        return
    item.delete()
    _renumber(cart)
    _touch(cart)
    logger.info(
        "cart.item_removed",
        extra={"event": "cart.item_removed", "cart_id": cart.id, "user_id": user.id, "index": index},
    )


@transaction.atomic
def update_item_customization(*, user, index: int, customization_data: dict) -> CartItem:
    """Replace the workspace customization payload of the line at ``index``.

    Only lines added as customized can be edited; their fee was priced at add
    time, so a plain line has to be re-added as a customized one.
    """

    cart = Cart.objects.filter(user=user).first()
    item = _item_at(cart, index)
    if not item.is_customized:
        raise ValidationError("This cart item is not customized", code="item_not_customized")
    item.customization_data = customization_data
    item.save(update_fields=["customization_data", "updated_at"])
    _touch(cart)
    logger.info(
        "cart.customization_updated",
        extra={"event": "cart.customization_updated", "cart_id": cart.id, "user_id": user.id, "index": index},
    )
    return item


def clear_cart(*, user) -> int:
    """Delete the user's whole cart. Returns the number of lines removed."""

    cart = Cart.objects.filter(user=user).first()
    if cart is None:
        return 0
    count = cart.items.count()
    cart.delete()
    logger.info("cart.cleared", extra={"event": "cart.cleared", "user_id": user.id, "items": count})
    return count
