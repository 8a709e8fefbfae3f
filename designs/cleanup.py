"""Retention sweep for design blobs and payment screenshots.

Delivered orders keep their artwork for ``DESIGN_RETENTION_DELIVERED_DAYS``;
cancelled orders lose artwork and manual payment screenshots after
``DESIGN_RETENTION_CANCELLED_DAYS``. The two batches run independently and the
whole sweep stops once ``DESIGN_CLEANUP_TIME_BUDGET_SECONDS`` is spent, leaving
the rest for the next run.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from common.choices import OrderStatus
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from .models import CustomDesign
from .storage import ObjectStore, get_object_store

logger = logging.getLogger("printworks.designs")

MAX_ERROR_DETAILS = 10


@dataclass
class SweepReport:
    delivered_orders_processed: int = 0
    cancelled_orders_processed: int = 0
    orders_cleaned: int = 0
    files_deleted: int = 0
    designs_deleted: int = 0
    errors: list[str] = field(default_factory=list)
    timed_out: bool = False

    def as_dict(self) -> dict:
        return {
            "deliveredOrdersProcessed": self.delivered_orders_processed,
            "cancelledOrdersProcessed": self.cancelled_orders_processed,
            "ordersCleaned": self.orders_cleaned,
            "filesDeleted": self.files_deleted,
            "designsDeleted": self.designs_deleted,
            "errors": len(self.errors),
            "errorDetails": self.errors[:MAX_ERROR_DETAILS],
            "timedOut": self.timed_out,
        }


class RetentionSweep:
    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        budget_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        now=None,
    ):
        self.store = store or get_object_store()
        self.budget = float(
            budget_seconds if budget_seconds is not None else getattr(settings, "DESIGN_CLEANUP_TIME_BUDGET_SECONDS", 300)
        )
        self.clock = clock
        self.now = now or timezone.now()
        self.report = SweepReport()
        self._started = None

    def run(self) -> SweepReport:
        self._started = self.clock()
        delivered_cutoff = self.now - timedelta(days=settings.DESIGN_RETENTION_DELIVERED_DAYS)
        cancelled_cutoff = self.now - timedelta(days=settings.DESIGN_RETENTION_CANCELLED_DAYS)
        self._run_batch(OrderStatus.DELIVERED, delivered_cutoff, include_screenshot=False)
        self._run_batch(OrderStatus.CANCELLED, cancelled_cutoff, include_screenshot=True)
        logger.info("design.cleanup_finished", extra={"event": "design.cleanup_finished", **self.report.as_dict()})
        return self.report

    def _out_of_time(self) -> bool:
        return self.clock() - self._started >= self.budget

    def _run_batch(self, status: str, cutoff, *, include_screenshot: bool) -> None:
        from orders.models import Order

        if self._out_of_time():
            self.report.timed_out = True
            return
        try:
            orders = list(
                Order.objects.filter(status=status, created_at__lt=cutoff, design_assets_purged_at__isnull=True)
                .prefetch_related("items")
                .order_by("created_at")
            )
        except DatabaseError as exc:
            logger.error("design.cleanup_batch_failed", extra={"event": "design.cleanup_batch_failed", "status": status}, exc_info=True)
            self.report.errors.append(f"{status} batch: {exc}")
            return

        for order in orders:
            if self._out_of_time():
                self.report.timed_out = True
                logger.warning(
                    "design.cleanup_timed_out",
                    extra={"event": "design.cleanup_timed_out", "status": status, "order_number": order.order_number},
                )
                return
            if status == OrderStatus.DELIVERED:
                self.report.delivered_orders_processed += 1
            else:
                self.report.cancelled_orders_processed += 1
            try:
                self._clean_order(order, include_screenshot=include_screenshot)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "design.cleanup_order_failed",
                    extra={"event": "design.cleanup_order_failed", "order_number": order.order_number},
                    exc_info=True,
                )
                self.report.errors.append(f"Order {order.order_number}: {exc}")
                continue
            self.report.orders_cleaned += 1

    def _clean_order(self, order, *, include_screenshot: bool) -> None:
        urls = []
        for item in order.items.all():
            for asset in item.designs or []:
                urls.extend(u for u in (asset.get("fileUrl"), asset.get("previewUrl")) if u)
        designs = CustomDesign.objects.filter(order_number=order.order_number, saved_to_library=False)
        for design in designs:
            urls.extend(u for u in (design.file_url, design.preview_url) if u)
        if include_screenshot:
            screenshot = (order.manual_payment_details or {}).get("screenshotUrl")
            if screenshot:
                urls.append(screenshot)

        # Library artwork outlives the orders that reference it
        library = set(
            CustomDesign.objects.filter(saved_to_library=True, file_url__in=urls).values_list("file_url", flat=True)
        )
        library |= set(
            CustomDesign.objects.filter(saved_to_library=True, preview_url__in=urls).values_list("preview_url", flat=True)
        )

        # Only objects we issued; pass-through URLs live elsewhere
        for url in dict.fromkeys(urls):
            if url in library:
                continue
            if self.store.owns(url) and self.store.delete(url):
                self.report.files_deleted += 1

        deleted, _ = designs.delete()
        self.report.designs_deleted += deleted
        order.design_assets_purged_at = timezone.now()
        order.save(update_fields=["design_assets_purged_at"])


def sweep_expired_design_assets(store: Optional[ObjectStore] = None, budget_seconds: Optional[float] = None, **kwargs) -> SweepReport:
    """Run one retention sweep and return its report."""
    return RetentionSweep(store=store, budget_seconds=budget_seconds, **kwargs).run()
