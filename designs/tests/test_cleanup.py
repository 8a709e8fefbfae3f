from datetime import timedelta
from itertools import count

import pytest
from common.choices import OrderStatus
from designs.cleanup import RetentionSweep, sweep_expired_design_assets
from designs.models import CustomDesign
from designs.storage import ObjectStore
from designs.tests.factories import PNG_BYTES, CustomDesignFactory
from django.core.management import call_command
from django.utils import timezone
from orders.models import Order
from orders.tests.factories import OrderFactory, OrderItemFactory


def _age(order, days):
    Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(days=days))


def _order_with_artwork(status, days, **kwargs):
    """Order whose single line carries one stored design blob."""
    store = ObjectStore()
    order = OrderFactory(status=status, **kwargs)
    url = store.put(f"designs/{order.user_id}/{order.order_number}/item-0/view-0.png", PNG_BYTES)
    design = CustomDesignFactory(user=order.user, file_url=url, order_number=order.order_number)
    OrderItemFactory(
        order=order,
        is_customized=True,
        design_format="views",
        designs=[{"key": "0", "designId": design.id, "fileUrl": url, "fileName": "a.png", "position": None, "previewUrl": ""}],
    )
    _age(order, days)
    return order, url, design


def _exists(url):
    store = ObjectStore()
    return store.storage.exists(store.name_for(url))


@pytest.mark.django_db
def test_delivered_orders_past_retention_are_purged():
    order, url, design = _order_with_artwork(OrderStatus.DELIVERED, days=200)

    report = sweep_expired_design_assets()

    assert report.delivered_orders_processed == 1
    assert report.orders_cleaned == 1
    assert report.files_deleted == 1
    assert report.designs_deleted == 1
    assert not _exists(url)
    assert not CustomDesign.objects.filter(id=design.id).exists()
    order.refresh_from_db()
    assert order.design_assets_purged_at is not None


@pytest.mark.django_db
def test_recent_orders_are_left_alone():
    _, delivered_url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=120)
    _, cancelled_url, _ = _order_with_artwork(OrderStatus.CANCELLED, days=30)
    _, active_url, _ = _order_with_artwork(OrderStatus.SHIPPED, days=400)

    report = sweep_expired_design_assets()

    assert report.orders_cleaned == 0
    assert all(_exists(url) for url in (delivered_url, cancelled_url, active_url))


@pytest.mark.django_db
def test_cancelled_orders_lose_payment_screenshot_too():
    store = ObjectStore()
    screenshot = store.put("payments/screenshot.png", PNG_BYTES)
    order, url, _ = _order_with_artwork(
        OrderStatus.CANCELLED,
        days=95,
        payment_method="manual_upi",
        manual_payment_details={"transactionId": "UTR1", "screenshotUrl": screenshot},
    )

    report = sweep_expired_design_assets()

    assert report.cancelled_orders_processed == 1
    assert report.files_deleted == 2
    assert not _exists(url)
    assert not _exists(screenshot)


@pytest.mark.django_db
def test_library_designs_and_external_urls_survive():
    order, url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=200)
    kept = CustomDesignFactory(user=order.user, order_number=order.order_number, saved_to_library=True)
    external = "https://cdn.example.com/shared/logo.png"
    item = order.items.first()
    item.designs = item.designs + [{"key": "1", "designId": None, "fileUrl": external, "previewUrl": ""}]
    item.save(update_fields=["designs"])

    report = sweep_expired_design_assets()

    assert report.files_deleted == 1
    assert CustomDesign.objects.filter(id=kept.id).exists()


@pytest.mark.django_db
def test_library_artwork_referenced_by_an_order_is_kept():
    order, url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=200)
    library_url = ObjectStore().put(f"designs/{order.user_id}/library/logo.png", PNG_BYTES)
    CustomDesignFactory(user=order.user, file_url=library_url, saved_to_library=True, order_number="")
    item = order.items.first()
    item.designs = item.designs + [{"key": "1", "designId": None, "fileUrl": library_url, "previewUrl": ""}]
    item.save(update_fields=["designs"])

    report = sweep_expired_design_assets()

    assert report.files_deleted == 1
    assert not _exists(url)
    assert _exists(library_url)


@pytest.mark.django_db
def test_purged_orders_are_skipped():
    order, url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=200)
    sweep_expired_design_assets()

    report = sweep_expired_design_assets()

    assert report.delivered_orders_processed == 0
    assert report.files_deleted == 0


@pytest.mark.django_db
def test_sweep_stops_at_time_budget():
    _, first_url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=300)
    _, second_url, _ = _order_with_artwork(OrderStatus.DELIVERED, days=200)
    ticks = count()

    # Every clock read advances one second: start, batch check, first order, second order
    report = RetentionSweep(budget_seconds=2.5, clock=lambda: float(next(ticks))).run()

    assert report.timed_out is True
    assert report.delivered_orders_processed == 1
    assert not _exists(first_url)
    assert _exists(second_url)
    assert report.as_dict()["timedOut"] is True


@pytest.mark.django_db
def test_management_command_runs_sweep(capsys):
    _order_with_artwork(OrderStatus.DELIVERED, days=200)

    call_command("cleanup_designs")

    assert "Processed 1 delivered and 0 cancelled orders" in capsys.readouterr().out
