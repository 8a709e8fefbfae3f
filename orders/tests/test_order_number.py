import re
from datetime import datetime, timezone

import pytest
from cart.tests.factories import cart_line
from common.choices import PaymentMethod
from designs.materializer import MaterializationResult, MaterializedLine
from designs.tests.factories import CustomDesignFactory
from inventory.services import validate_cart_stock
from orders import services
from orders.assembler import assemble_order, generate_order_number
from orders.models import Order
from orders.tests.factories import OrderFactory


def test_order_number_format(settings):
    settings.ORDER_NUMBER_PREFIX = "PW"
    number = generate_order_number(datetime(2026, 3, 1, tzinfo=timezone.utc))
    assert re.fullmatch(r"PW-2026-\d{5}", number)


@pytest.mark.django_db
def test_reserve_skips_numbers_in_use(monkeypatch):
    OrderFactory(order_number="PW-2026-00001")
    numbers = iter(["PW-2026-00001", "PW-2026-00002"])
    monkeypatch.setattr(services, "generate_order_number", lambda: next(numbers))

    assert services.reserve_order_number() == "PW-2026-00002"


@pytest.mark.django_db
def test_commit_retries_on_number_collision(user, cart, variant, address, monkeypatch):
    OrderFactory(order_number="PW-2026-11111")
    design = CustomDesignFactory(user=user, order_number="PW-2026-11111")
    items = [cart_line(variant, cart=cart)]
    intents = validate_cart_stock(items)
    materialized = MaterializationResult(lines=[], design_ids=[design.id])
    assembled = assemble_order(
        user=user,
        cart_items=items,
        materialized_lines=[MaterializedLine()],
        shipping_address=address,
        payment_method=PaymentMethod.COD,
        order_number="PW-2026-11111",
    )
    monkeypatch.setattr(services, "generate_order_number", lambda: "PW-2026-22222")

    order = services.commit_order(assembled, cart=cart, intents=intents, materialized=materialized)

    assert order.order_number == "PW-2026-22222"
    assert Order.objects.filter(order_number__in=["PW-2026-11111", "PW-2026-22222"]).count() == 2
    design.refresh_from_db()
    assert design.order_number == "PW-2026-22222"
