from decimal import Decimal

import pytest
from cart.models import Cart, CartItem
from cart.services import (
    CartItemNotFound,
    add_item,
    clear_cart,
    remove_item,
    set_item_quantity,
    update_item_customization,
)
from catalog.tests.factories import ProductFactory, ProductVariantFactory
from common.exceptions import ProductNotFound, ValidationError, VariantNotFound
from designs.tests.factories import CustomDesignFactory, view_payload
from users.tests.factories import UserFactory


@pytest.fixture
def user():
    return UserFactory()


@pytest.fixture
def variant():
    product = ProductFactory(base_price=Decimal("450.00"), customization_fee=Decimal("150.00"))
    return ProductVariantFactory(product=product, size="L", color="Black", stock=5)


def _add(user, variant, **kwargs):
    params = {"product_id": variant.product_id, "size": variant.size, "color": variant.color, "quantity": 1}
    params.update(kwargs)
    return add_item(user=user, **params)


@pytest.mark.django_db
def test_add_snapshots_price_and_fee_only_for_customized_lines(user, variant):
    plain = _add(user, variant, quantity=2)
    custom = _add(user, variant, is_customized=True, customization_data=view_payload((0, "lib-1")))

    assert (plain.unit_price, plain.customization_fee) == (Decimal("450.00"), Decimal("0.00"))
    assert (custom.unit_price, custom.customization_fee) == (Decimal("450.00"), Decimal("150.00"))
    assert custom.line_total == Decimal("600.00")
    assert [plain.position, custom.position] == [0, 1]


@pytest.mark.django_db
def test_price_snapshot_survives_catalog_change(user, variant):
    item = _add(user, variant)
    variant.product.base_price = Decimal("999.00")
    variant.product.save()

    item.refresh_from_db()
    assert item.unit_price == Decimal("450.00")


@pytest.mark.django_db
def test_plain_lines_merge_but_customized_lines_do_not(user, variant):
    _add(user, variant, quantity=1)
    merged = _add(user, variant, quantity=3)
    _add(user, variant, is_customized=True, customization_data=view_payload((0, "lib-1")))
    _add(user, variant, is_customized=True, customization_data=view_payload((1, "lib-1")))

    assert merged.quantity == 4
    assert CartItem.objects.filter(cart__user=user).count() == 3


@pytest.mark.django_db
def test_add_rejects_unknown_product_variant_and_customization(user, variant):
    inactive = ProductFactory(is_active=False)
    locked = ProductVariantFactory(product=ProductFactory(allow_customization=False))

    with pytest.raises(ProductNotFound):
        add_item(user=user, product_id=inactive.id, size="M", color="Red", quantity=1)
    with pytest.raises(VariantNotFound):
        _add(user, variant, size="XXL")
    with pytest.raises(ValidationError) as excinfo:
        _add(user, locked, is_customized=True)
    assert excinfo.value.code == "customization_not_allowed"


@pytest.mark.django_db
def test_add_with_stored_design_must_belong_to_user(user, variant):
    mine = CustomDesignFactory(user=user, product=variant.product)
    theirs = CustomDesignFactory(product=variant.product)

    item = _add(user, variant, is_customized=True, custom_design_id=mine.id)
    assert item.custom_design_id == mine.id

    with pytest.raises(ValidationError) as excinfo:
        _add(user, variant, is_customized=True, custom_design_id=theirs.id)
    assert excinfo.value.code == "design_not_found"


@pytest.mark.django_db
def test_set_quantity_and_remove_by_index(user, variant):
    other = ProductVariantFactory(product=variant.product, size="S", color="Black")
    _add(user, variant)
    _add(user, other)

    updated = set_item_quantity(user=user, index=1, quantity=7)
    assert (updated.size, updated.quantity) == ("S", 7)

    assert set_item_quantity(user=user, index=0, quantity=0) is None
    remaining = list(CartItem.objects.filter(cart__user=user))
    assert [(i.size, i.position) for i in remaining] == [("S", 0)]

    with pytest.raises(CartItemNotFound):
        set_item_quantity(user=user, index=5, quantity=1)

    # Unknown indexes are ignored on removal
    remove_item(user=user, index=9)
    assert CartItem.objects.filter(cart__user=user).count() == 1


@pytest.mark.django_db
def test_update_customization_replaces_workspace_data(user, variant):
    _add(user, variant, is_customized=True, customization_data=view_payload((0, "lib-1")))
    data = view_payload((0, "lib-1"), notes="Bigger logo")

    item = update_item_customization(user=user, index=0, customization_data=data)

    item.refresh_from_db()
    assert item.is_customized is True
    assert item.customization_data["notes"] == "Bigger logo"
    assert item.customization_fee == Decimal("150.00")


@pytest.mark.django_db
def test_update_customization_refuses_plain_lines(user):
    locked = ProductVariantFactory(
        product=ProductFactory(allow_customization=False, customization_fee=Decimal("100.00")), size="M", color="Red"
    )
    _add(user, locked)

    with pytest.raises(ValidationError) as excinfo:
        update_item_customization(user=user, index=0, customization_data=view_payload((0, "lib-1")))

    assert excinfo.value.code == "item_not_customized"
    item = CartItem.objects.get(cart__user=user)
    assert item.is_customized is False
    assert item.customization_data is None
    assert item.customization_fee == Decimal("0.00")


@pytest.mark.django_db
def test_clear_cart(user, variant):
    _add(user, variant)
    _add(user, variant, is_customized=True, customization_data=view_payload((0, "lib-1")))

    assert clear_cart(user=user) == 2
    assert not Cart.objects.filter(user=user).exists()
    assert clear_cart(user=user) == 0
