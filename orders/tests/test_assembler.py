from decimal import Decimal
from types import SimpleNamespace

from common.choices import DesignFormat, OrderStatus, PaymentMethod, PaymentStatus
from designs.materializer import DesignAsset, MaterializedLine
from orders.assembler import PricingPolicy, assemble_order, freeze_shipping_address
from promotions.services import PromoResult


def _line(price, fee="0.00", qty=1, customized=False):
    return SimpleNamespace(
        product_id=1,
        product=SimpleNamespace(name="Classic Tee"),
        size="M",
        color="Red",
        quantity=qty,
        is_customized=customized,
        unit_price=Decimal(price),
        customization_fee=Decimal(fee),
    )


def _assemble(items, lines=None, **kwargs):
    params = {
        "user": None,
        "cart_items": items,
        "materialized_lines": lines or [MaterializedLine() for _ in items],
        "shipping_address": {"street": "12 MG Road", "city": "Bengaluru"},
        "payment_method": PaymentMethod.COD,
        "order_number": "PW-2026-00001",
        "policy": PricingPolicy(),
    }
    params.update(kwargs)
    return assemble_order(**params)


def test_totals_follow_cart_snapshot():
    order = _assemble([_line("500.00", qty=2), _line("900.00", fee="150.00", customized=True)])

    assert [line.item_total for line in order.lines] == [Decimal("1000.00"), Decimal("1050.00")]
    assert order.subtotal == Decimal("2050.00")
    assert order.total == Decimal("2050.00")
    assert order.status == OrderStatus.CONFIRMED
    assert order.payment_status == PaymentStatus.PENDING
    assert order.has_customized_items is True


def test_shipping_policy_and_discount_clamp():
    promo = PromoResult(code="HUGE", discount=Decimal("5000.00"))

    order = _assemble([_line("300.00")], policy=PricingPolicy(flat_shipping=Decimal("49")), promo=promo)

    assert order.shipping == Decimal("49.00")
    assert order.discount == Decimal("300.00")
    assert order.total == Decimal("49.00")
    assert order.promo_code == "HUGE"


def test_gateway_orders_start_paid():
    gateway = {"order_id": "order_1", "payment_id": "pay_1", "signature": "sig"}
    order = _assemble([_line("100.00")], payment_method=PaymentMethod.RAZORPAY, gateway=gateway)
    assert order.payment_status == PaymentStatus.PAID
    assert (order.razorpay_order_id, order.razorpay_payment_id) == ("order_1", "pay_1")


def test_designs_are_carried_onto_lines():
    asset = DesignAsset(key="front", design_id=3, file_url="https://blob.printworks.test/a.png")
    lines = [MaterializedLine(format=DesignFormat.NAMED, assets=[asset], notes="Matte")]

    order = _assemble([_line("100.00", customized=True)], lines=lines)

    line = order.lines[0]
    assert line.design_format == DesignFormat.NAMED
    assert line.designs[0]["fileUrl"] == "https://blob.printworks.test/a.png"
    assert line.notes == "Matte"


def test_shipping_address_is_frozen_to_known_fields():
    address = {"name": " Asha ", "street": "12 MG Road", "postalCode": 560001, "nickname": "home"}

    frozen = freeze_shipping_address(address)

    assert frozen["name"] == "Asha"
    assert frozen["postalCode"] == "560001"
    assert frozen["country"] == ""
    assert "nickname" not in frozen
