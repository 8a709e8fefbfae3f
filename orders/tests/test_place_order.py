import re
from decimal import Decimal

import pytest
from cart.models import Cart
from cart.tests.factories import cart_line
from catalog.models import ProductVariant
from common.choices import DesignFormat, NotificationType, OrderStatus, PaymentMethod, PaymentStatus
from common.exceptions import (
    AssetMaterializationFailed,
    EmptyCart,
    InsufficientStock,
    InvalidPromoCode,
    PaymentVerificationFailed,
    ProductNotFound,
)
from designs.models import CustomDesign
from designs.storage import ObjectStore
from designs.tests.factories import view_payload
from django.core import mail
from django.db import DatabaseError
from notifications.models import Notification
from orders import services
from orders.models import Order
from orders.payments import expected_signature
from orders.services import place_order
from promotions.models import PromoCode
from promotions.tests.factories import PromoCodeFactory


def _stock(variant):
    return ProductVariant.objects.get(pk=variant.pk).stock


@pytest.mark.django_db
def test_plain_checkout_commits_order_and_decrements_stock(user, cart, variant, address):
    cart_line(variant, cart=cart, quantity=2)

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert re.fullmatch(r"PW-\d{4}-\d{5}", order.order_number)
    assert order.status == OrderStatus.CONFIRMED
    assert order.payment_status == PaymentStatus.PENDING
    assert order.subtotal == Decimal("1000.00")
    assert order.shipping == Decimal("0.00")
    assert order.total == Decimal("1000.00")
    assert order.shipping_address["postalCode"] == "560001"
    item = order.items.get()
    assert (item.name, item.quantity, item.item_total) == ("Classic Tee", 2, Decimal("1000.00"))
    assert item.design_format == DesignFormat.NONE
    assert _stock(variant) == 3
    assert not Cart.objects.filter(user=user).exists()
    assert Notification.objects.filter(order_number=order.order_number, type=NotificationType.NEW_ORDER).count() == 1


@pytest.mark.django_db
def test_totals_are_consistent(user, cart, variant, custom_variant, address, settings):
    settings.ORDER_SHIPPING_FLAT_RATE = "49.00"
    PromoCodeFactory(code="FLAT100", discount_type="fixed", discount_value=Decimal("100.00"))
    cart_line(variant, cart=cart, quantity=1, position=0)
    cart_line(
        custom_variant,
        cart=cart,
        quantity=2,
        position=1,
        is_customized=True,
        customization_fee=Decimal("150.00"),
        customization_data=view_payload((0, "lib-1")),
    )

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address, promo_code="flat100")

    items = list(order.items.all())
    assert [i.item_total for i in items] == [Decimal("500.00"), Decimal("2100.00")]
    assert order.subtotal == sum(i.item_total for i in items)
    assert order.discount == Decimal("100.00")
    assert order.total == order.subtotal + order.shipping - order.discount == Decimal("2549.00")
    assert order.promo_code == "FLAT100"
    assert PromoCode.objects.get(code="FLAT100").used_count == 1


@pytest.mark.django_db
def test_customized_checkout_stores_designs(user, cart, custom_variant, address):
    cart_line(
        custom_variant,
        cart=cart,
        is_customized=True,
        customization_fee=Decimal("150.00"),
        customization_data=view_payload((0, "lib-1"), (1, "lib-1"), notes="Left chest"),
    )

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    item = order.items.get()
    assert item.is_customized is True
    assert item.design_format == DesignFormat.VIEWS
    assert item.notes == "Left chest"
    assert [asset["key"] for asset in item.designs] == ["0", "1"]
    store = ObjectStore()
    for asset in item.designs:
        assert store.storage.exists(store.name_for(asset["fileUrl"]))
    assert CustomDesign.objects.filter(order_number=order.order_number).count() == 2
    types = set(Notification.objects.filter(order_number=order.order_number).values_list("type", flat=True))
    assert types == {NotificationType.NEW_ORDER, NotificationType.CUSTOMIZED_ORDER}


@pytest.mark.django_db
def test_insufficient_stock_writes_nothing(user, variant, address):
    variant.stock = 1
    variant.save()
    cart = Cart.objects.create(user=user)
    cart_line(variant, cart=cart, quantity=2)

    with pytest.raises(InsufficientStock) as excinfo:
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert excinfo.value.extra["available"] == 1
    assert _stock(variant) == 1
    assert not Order.objects.exists()
    assert Cart.objects.get(user=user).items.count() == 1


@pytest.mark.django_db
def test_demand_is_summed_per_variant(user, cart, variant, address):
    cart_line(variant, cart=cart, quantity=3, position=0)
    cart_line(variant, cart=cart, quantity=3, position=1, is_customized=True)

    with pytest.raises(InsufficientStock):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert _stock(variant) == 5


@pytest.mark.django_db
def test_dangling_design_reference_aborts_checkout(user, cart, variant, custom_variant, address):
    cart_line(variant, cart=cart, position=0)
    cart_line(
        custom_variant,
        cart=cart,
        position=1,
        is_customized=True,
        customization_data=view_payload((0, "lib-1"), (1, "lib-404")),
    )

    with pytest.raises(AssetMaterializationFailed) as excinfo:
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert excinfo.value.failures == ["Item 2 (Studio Hoodie): only 1 of 2 views were materialized"]
    assert not Order.objects.exists()
    assert not CustomDesign.objects.exists()
    assert (_stock(variant), _stock(custom_variant)) == (5, 4)
    assert Cart.objects.get(user=user).items.count() == 2


@pytest.mark.django_db
def test_stock_taken_after_validation_rolls_back_order(user, cart, custom_variant, address, monkeypatch):
    cart_line(custom_variant, cart=cart, quantity=2, is_customized=True, customization_data=view_payload((0, "lib-1")))
    validate = services.validate_cart_stock

    def validate_then_sell_out(items):
        intents = validate(items)
        # Another checkout wins the race for the last units
        ProductVariant.objects.filter(pk=custom_variant.pk).update(stock=1)
        return intents

    monkeypatch.setattr(services, "validate_cart_stock", validate_then_sell_out)

    with pytest.raises(InsufficientStock):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert not Order.objects.exists()
    assert not Notification.objects.exists()
    assert not CustomDesign.objects.exists()
    assert _stock(custom_variant) == 1


@pytest.mark.django_db
def test_empty_or_missing_cart_is_rejected(user, address):
    with pytest.raises(EmptyCart):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)
    Cart.objects.create(user=user)
    with pytest.raises(EmptyCart):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)


@pytest.mark.django_db
def test_deactivated_product_is_rejected(user, cart, variant, address):
    cart_line(variant, cart=cart)
    variant.product.is_active = False
    variant.product.save()

    with pytest.raises(ProductNotFound):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)


@pytest.mark.django_db
def test_razorpay_payment_is_verified(user, cart, variant, address):
    cart_line(variant, cart=cart)
    gateway = {
        "order_id": "order_Abc123",
        "payment_id": "pay_Xyz789",
        "signature": expected_signature("order_Abc123", "pay_Xyz789", "test-razorpay-secret"),
    }

    order = place_order(user=user, payment_method=PaymentMethod.RAZORPAY, shipping_address=address, gateway=gateway)

    assert order.payment_status == PaymentStatus.PAID
    assert (order.razorpay_order_id, order.razorpay_payment_id) == ("order_Abc123", "pay_Xyz789")


@pytest.mark.django_db
def test_bad_razorpay_signature_is_rejected(user, cart, variant, address):
    cart_line(variant, cart=cart)
    gateway = {"order_id": "order_Abc123", "payment_id": "pay_Xyz789", "signature": "0" * 64}

    with pytest.raises(PaymentVerificationFailed):
        place_order(user=user, payment_method=PaymentMethod.RAZORPAY, shipping_address=address, gateway=gateway)

    assert not Order.objects.exists()
    assert _stock(variant) == 5


@pytest.mark.django_db
def test_manual_payment_keeps_proof(user, cart, variant, address):
    cart_line(variant, cart=cart)
    proof = {"transactionId": "UTR123456", "screenshotUrl": "https://blob.printworks.test/payments/1.png"}

    order = place_order(
        user=user, payment_method=PaymentMethod.MANUAL_UPI, shipping_address=address, manual_payment=proof
    )

    assert order.payment_status == PaymentStatus.PENDING
    assert order.manual_payment_details["transactionId"] == "UTR123456"


@pytest.mark.django_db
def test_unknown_promo_code_is_rejected(user, cart, variant, address):
    cart_line(variant, cart=cart)

    with pytest.raises(InvalidPromoCode):
        place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address, promo_code="NOPE")

    assert not Order.objects.exists()


@pytest.mark.django_db
def test_confirmation_and_admin_emails(user, cart, custom_variant, address):
    cart_line(custom_variant, cart=cart, is_customized=True, customization_data=view_payload((0, "lib-1")))

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert len(mail.outbox) == 2
    confirmation, admin = mail.outbox
    assert confirmation.to == ["buyer@example.com"]
    assert confirmation.subject == f"Order confirmed: {order.order_number}"
    assert admin.to == ["admin@printworks.test"]
    assert admin.subject == f"[Customized] New order {order.order_number}"


@pytest.mark.django_db
def test_emails_skipped_without_smtp_host(user, cart, variant, address, settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    settings.EMAIL_HOST = ""
    cart_line(variant, cart=cart)

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert order.pk is not None
    assert mail.outbox == []


@pytest.mark.django_db
def test_email_failure_does_not_fail_order(user, cart, variant, address, monkeypatch):
    def broken(order):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(services, "send_order_confirmation_email", broken)
    cart_line(variant, cart=cart)

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert Order.objects.filter(pk=order.pk).exists()
    assert len(mail.outbox) == 1


@pytest.mark.django_db
def test_cart_delete_failure_does_not_fail_order(user, cart, variant, address, monkeypatch):
    def broken(self, *args, **kwargs):
        raise DatabaseError("cart table locked")

    monkeypatch.setattr(Cart, "delete", broken)
    cart_line(variant, cart=cart, quantity=2)

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert Order.objects.filter(pk=order.pk, status=OrderStatus.CONFIRMED).exists()
    assert _stock(variant) == 3
    # Left for the customer to clear
    assert Cart.objects.filter(user=user).exists()


@pytest.mark.django_db
def test_notification_failure_does_not_fail_order(user, cart, custom_variant, address, monkeypatch):
    def broken(**kwargs):
        raise DatabaseError("sink down")

    monkeypatch.setattr(Notification.objects, "create", broken)
    cart_line(
        custom_variant,
        cart=cart,
        quantity=1,
        is_customized=True,
        customization_fee=Decimal("150.00"),
        customization_data=view_payload((0, "lib-1")),
    )

    order = place_order(user=user, payment_method=PaymentMethod.COD, shipping_address=address)

    assert Order.objects.filter(pk=order.pk).exists()
    assert _stock(custom_variant) == 3
    assert not Notification.objects.filter(order_number=order.order_number).exists()
    assert not Cart.objects.filter(user=user).exists()
