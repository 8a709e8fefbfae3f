"""Turn cart-held design payloads into durable design assets.

Runs once per checkout attempt, before the order is assembled. Every line is
processed and every failure collected; if anything failed the uploads made in
this attempt are discarded and :class:`AssetMaterializationFailed` is raised,
so an order never ships with part of its artwork missing.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from common.choices import DesignFormat
from common.exceptions import AssetMaterializationFailed
from django.conf import settings
from django.db import DatabaseError

from .models import CustomDesign
from .payloads import (
    NAMED_AREAS,
    DesignDecodeError,
    DesignReference,
    NamedAreaPayload,
    Position,
    ViewDesignPayload,
    decode_data_url,
    extension_for,
    is_data_url,
    parse_cart_item_payload,
)
from .storage import ObjectStore, get_object_store

logger = logging.getLogger("printworks.designs")


@dataclass
class DesignAsset:
    key: str
    design_id: Optional[int]
    file_url: str
    file_name: str = ""
    position: Optional[dict] = None
    preview_url: str = ""

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "designId": self.design_id,
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "position": self.position,
            "previewUrl": self.preview_url,
        }


@dataclass
class MaterializedLine:
    format: str = DesignFormat.NONE
    assets: list[DesignAsset] = field(default_factory=list)
    notes: str = ""

    def designs_json(self) -> list[dict]:
        return [asset.as_dict() for asset in self.assets]


@dataclass
class MaterializationResult:
    lines: list[MaterializedLine] = field(default_factory=list)
    uploaded_urls: list[str] = field(default_factory=list)
    design_ids: list[int] = field(default_factory=list)

    def discard(self, store: Optional[ObjectStore] = None) -> None:
        """Delete every blob and design row created by this attempt.

        Best-effort: a failed delete is logged and the rest carry on.
        """
        store = store or get_object_store()
        for url in self.uploaded_urls:
            try:
                store.delete(url)
            except Exception:  # noqa: BLE001
                logger.warning("design.discard_failed", extra={"event": "design.discard_failed", "url": url}, exc_info=True)
        if self.design_ids:
            try:
                CustomDesign.objects.filter(id__in=self.design_ids).delete()
            except DatabaseError:
                logger.warning(
                    "design.discard_failed",
                    extra={"event": "design.discard_failed", "design_ids": self.design_ids},
                    exc_info=True,
                )
        logger.info(
            "design.discarded",
            extra={"event": "design.discarded", "blobs": len(self.uploaded_urls), "designs": len(self.design_ids)},
        )
        self.uploaded_urls = []
        self.design_ids = []


@dataclass(frozen=True)
class _UploadJob:
    key: str
    stem: str
    source: str
    design_type: str
    position: Optional[Position] = None
    preview_source: str = ""
    file_name: str = ""
    file_type: str = ""
    width: int = 0
    height: int = 0


@dataclass
class _UploadOutcome:
    job: _UploadJob
    file_url: str = ""
    file_type: str = ""
    file_size: int = 0
    stored: bool = False
    preview_url: str = ""
    error: Optional[str] = None


class DesignMaterializer:
    def __init__(self, user, order_number: str, store: Optional[ObjectStore] = None, max_workers: Optional[int] = None):
        self.user = user
        self.order_number = order_number
        self.store = store or get_object_store()
        self.max_workers = max(1, int(max_workers or getattr(settings, "DESIGN_UPLOAD_WORKERS", 4)))
        self.max_bytes = int(getattr(settings, "DESIGN_MAX_UPLOAD_BYTES", 10 * 1024 * 1024))

    def materialize(self, cart_items) -> MaterializationResult:
        result = MaterializationResult()
        failures: list[str] = []
        try:
            for index, item in enumerate(cart_items):
                self._materialize_line(index, item, result, failures)
        except Exception:
            logger.error(
                "design.materialization_aborted",
                extra={"event": "design.materialization_aborted", "order_number": self.order_number},
                exc_info=True,
            )
            result.discard(self.store)
            raise

        if failures:
            logger.error(
                "design.materialization_failed",
                extra={"event": "design.materialization_failed", "order_number": self.order_number, "failures": failures},
            )
            result.discard(self.store)
            raise AssetMaterializationFailed(failures)

        logger.info(
            "design.materialized",
            extra={
                "event": "design.materialized",
                "order_number": self.order_number,
                "blobs": len(result.uploaded_urls),
                "designs": len(result.design_ids),
            },
        )
        return result

    def _materialize_line(self, index, item, result: MaterializationResult, failures: list[str]) -> None:
        label = self._label(index, item)
        try:
            payload = parse_cart_item_payload(item)
        except (TypeError, ValueError, AttributeError) as exc:
            failures.append(f"{label}: unreadable design data ({exc})")
            result.lines.append(MaterializedLine())
            return
        if payload is None:
            result.lines.append(MaterializedLine())
        elif isinstance(payload, DesignReference):
            result.lines.append(self._from_reference(payload, label, failures))
        elif isinstance(payload, ViewDesignPayload):
            result.lines.append(self._from_views(index, item, payload, label, result, failures))
        elif isinstance(payload, NamedAreaPayload):
            result.lines.append(self._from_named_areas(index, item, payload, label, result, failures))

    # Payload shapes

    def _from_reference(self, payload: DesignReference, label: str, failures: list[str]) -> MaterializedLine:
        design = CustomDesign.objects.filter(id=payload.design_id, user=self.user).first()
        if design is None:
            failures.append(f"{label}: design {payload.design_id} not found")
            return MaterializedLine()
        position = design.custom_position or design.print_area or None
        asset = DesignAsset(
            key=design.design_type or "0",
            design_id=design.id,
            file_url=design.file_url,
            file_name=design.file_name,
            position=position,
            preview_url=design.preview_url,
        )
        if design.design_type in NAMED_AREAS:
            return MaterializedLine(format=DesignFormat.NAMED, assets=[asset])
        asset.key = design.design_type.removeprefix("view-") or "0"
        return MaterializedLine(format=DesignFormat.VIEWS, assets=[asset])

    def _from_views(self, index, item, payload: ViewDesignPayload, label, result, failures) -> MaterializedLine:
        jobs = []
        for placement in payload.placements:
            image = payload.library.get(placement.design_id)
            if image is None:
                # Dangling library reference; surfaces through the shortfall check
                logger.warning(
                    "design.library_miss",
                    extra={"event": "design.library_miss", "order_number": self.order_number, "design_id": placement.design_id},
                )
                continue
            jobs.append(
                _UploadJob(
                    key=str(placement.view_index),
                    stem=f"view-{placement.view_index}",
                    source=image.source,
                    design_type=f"view-{placement.view_index}",
                    position=placement.position,
                    preview_source=placement.preview_source,
                    file_name=image.name,
                    file_type=image.file_type,
                    width=image.width,
                    height=image.height,
                )
            )
        assets = self._run(index, item, jobs, label, result, failures)
        if len(assets) < payload.expected_count:
            failures.append(f"{label}: only {len(assets)} of {payload.expected_count} views were materialized")
        return MaterializedLine(format=DesignFormat.VIEWS, assets=assets, notes=payload.notes)

    def _from_named_areas(self, index, item, payload: NamedAreaPayload, label, result, failures) -> MaterializedLine:
        assets = []
        jobs = []
        for slot in payload.slots:
            if slot.is_url:
                assets.append(
                    DesignAsset(
                        key=slot.area,
                        design_id=None,
                        file_url=slot.source,
                        file_name=slot.file_name,
                        position=slot.position.as_dict() if slot.position else None,
                    )
                )
                continue
            jobs.append(
                _UploadJob(
                    key=slot.area,
                    stem=slot.area,
                    source=slot.source,
                    design_type=slot.area,
                    position=slot.position,
                    file_name=slot.file_name,
                    file_type=slot.file_type,
                )
            )
        assets.extend(self._run(index, item, jobs, label, result, failures))
        if len(assets) < payload.expected_count:
            failures.append(f"{label}: only {len(assets)} of {payload.expected_count} design areas were materialized")
        order = {area: i for i, area in enumerate(NAMED_AREAS)}
        assets.sort(key=lambda asset: order.get(asset.key, len(order)))
        return MaterializedLine(format=DesignFormat.NAMED, assets=assets, notes=payload.notes)

    # Uploads

    def _run(self, index, item, jobs, label, result, failures) -> list[DesignAsset]:
        """Upload a line's jobs, then persist design rows on this thread."""
        if not jobs:
            return []
        prefix = f"designs/{self.user.pk}/{self.order_number}/item-{index}"
        workers = min(self.max_workers, len(jobs))
        if workers == 1:
            outcomes = [self._upload(prefix, job) for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="design-upload") as pool:
                outcomes = list(pool.map(lambda job: self._upload(prefix, job), jobs))

        assets = []
        for outcome in outcomes:
            if outcome.stored:
                result.uploaded_urls.append(outcome.file_url)
            if outcome.preview_url:
                result.uploaded_urls.append(outcome.preview_url)
            if outcome.error:
                failures.append(f"{label} {outcome.job.design_type}: {outcome.error}")
                continue
            design_id = None
            if outcome.stored:
                try:
                    design_id = self._persist(item, outcome)
                except DatabaseError as exc:
                    failures.append(f"{label} {outcome.job.design_type}: could not save design ({exc})")
                    continue
                result.design_ids.append(design_id)
            job = outcome.job
            assets.append(
                DesignAsset(
                    key=job.key,
                    design_id=design_id,
                    file_url=outcome.file_url,
                    file_name=job.file_name,
                    position=job.position.as_dict() if job.position else None,
                    preview_url=outcome.preview_url,
                )
            )
        return assets

    def _upload(self, prefix: str, job: _UploadJob) -> _UploadOutcome:
        outcome = _UploadOutcome(job=job, file_type=job.file_type)
        if not is_data_url(job.source):
            if not job.source:
                outcome.error = "missing image data"
                return outcome
            outcome.file_url = job.source
        else:
            try:
                mime, raw = self._decode(job.source)
                outcome.file_url = self.store.put(f"{prefix}/{job.stem}{extension_for(mime)}", raw)
            except DesignDecodeError as exc:
                outcome.error = str(exc)
                return outcome
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "design.upload_failed",
                    extra={"event": "design.upload_failed", "order_number": self.order_number, "design_type": job.design_type},
                    exc_info=True,
                )
                outcome.error = f"upload failed ({exc})"
                return outcome
            outcome.stored = True
            outcome.file_type = job.file_type or mime
            outcome.file_size = len(raw)

        if job.preview_source and is_data_url(job.preview_source):
            try:
                mime, raw = self._decode(job.preview_source)
                outcome.preview_url = self.store.put(f"{prefix}/{job.stem}-preview{extension_for(mime)}", raw)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "design.preview_upload_failed",
                    extra={"event": "design.preview_upload_failed", "order_number": self.order_number, "design_type": job.design_type},
                    exc_info=True,
                )
        return outcome

    def _decode(self, source: str) -> tuple[str, bytes]:
        mime, raw = decode_data_url(source)
        if len(raw) > self.max_bytes:
            raise DesignDecodeError(f"image is {len(raw)} bytes, limit is {self.max_bytes}")
        return mime, raw

    def _persist(self, item, outcome: _UploadOutcome) -> int:
        job = outcome.job
        design = CustomDesign.objects.create(
            user=self.user,
            product_id=item.product_id,
            file_url=outcome.file_url,
            file_name=job.file_name or f"{job.stem}",
            file_type=outcome.file_type,
            file_size=outcome.file_size,
            width=job.width,
            height=job.height,
            print_area=job.position.print_area() if job.position else {},
            custom_position=job.position.as_dict() if job.position else None,
            preview_url=outcome.preview_url,
            design_type=job.design_type,
            order_number=self.order_number,
            saved_to_library=False,
            status=CustomDesign.STATUS_PENDING,
        )
        return design.id

    @staticmethod
    def _label(index: int, item) -> str:
        product = getattr(item, "product", None)
        name = getattr(product, "name", None) or "unknown product"
        return f"Item {index + 1} ({name})"


def materialize_cart_designs(user, cart_items, order_number: str, store: Optional[ObjectStore] = None) -> MaterializationResult:
    """Materialize every line of ``cart_items`` for ``order_number``."""
    return DesignMaterializer(user, order_number, store=store).materialize(cart_items)
