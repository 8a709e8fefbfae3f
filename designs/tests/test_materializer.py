import pytest
from cart.tests.factories import CartFactory, cart_line
from catalog.tests.factories import ProductVariantFactory
from common.choices import DesignFormat
from common.exceptions import AssetMaterializationFailed
from designs.materializer import DesignMaterializer, materialize_cart_designs
from designs.models import CustomDesign
from designs.storage import ObjectStore
from designs.tests.factories import PNG_BYTES, CustomDesignFactory, data_url, view_payload
from django.core.files.storage import default_storage
from django.db import DatabaseError


def _stored(url: str) -> bool:
    name = ObjectStore().name_for(url)
    return name is not None and default_storage.exists(name)


class RecordingStore(ObjectStore):
    """Remembers every URL it handed out."""

    def __init__(self):
        super().__init__()
        self.issued = []

    def put(self, path, data, *, public=True):
        url = super().put(path, data, public=public)
        self.issued.append(url)
        return url


@pytest.fixture
def cart():
    return CartFactory()


@pytest.fixture
def variant():
    return ProductVariantFactory(stock=10)


@pytest.mark.django_db
def test_view_payload_is_uploaded_and_recorded(cart, variant):
    data = view_payload((0, "lib-1"), notes="Left chest")
    data["designLibrary"][0].update(width=800, height=600)
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=data)

    result = materialize_cart_designs(cart.user, [item], "PW-2026-00001")

    line = result.lines[0]
    assert line.format == DesignFormat.VIEWS
    assert line.notes == "Left chest"
    asset = line.assets[0]
    assert asset.key == "0"
    assert asset.file_url.startswith(f"https://blob.printworks.test/designs/{cart.user.id}/PW-2026-00001/item-0/view-0")
    assert asset.file_url.endswith(".png")
    assert _stored(asset.file_url)

    design = CustomDesign.objects.get(id=asset.design_id)
    assert design.design_type == "view-0"
    assert design.order_number == "PW-2026-00001"
    assert design.saved_to_library is False
    assert design.status == CustomDesign.STATUS_PENDING
    assert (design.width, design.height) == (800, 600)
    assert design.custom_position == {"x": 10.0, "y": 20.0, "width": 30.0, "height": 40.0, "rotation": 0.0}
    assert result.design_ids == [design.id]


@pytest.mark.django_db
def test_preview_upload_is_best_effort(cart, variant):
    data = view_payload((0, "lib-1"), (1, "lib-1"))
    data["viewDesigns"]["0"]["previewImage"] = data_url()
    data["viewDesigns"]["1"]["previewImage"] = "data:image/png;base64,@@@"
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=data)

    result = materialize_cart_designs(cart.user, [item], "PW-2026-00002")

    first, second = result.lines[0].assets
    assert "view-0-preview" in first.preview_url
    assert _stored(first.preview_url)
    assert second.preview_url == ""
    assert CustomDesign.objects.filter(order_number="PW-2026-00002").count() == 2


@pytest.mark.django_db
def test_plain_urls_pass_through_without_upload(cart, variant):
    library = [{"id": "lib-1", "name": "old.png", "url": "https://cdn.example.com/old.png"}]
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=view_payload((0, "lib-1"), library=library))

    result = materialize_cart_designs(cart.user, [item], "PW-2026-00003")

    asset = result.lines[0].assets[0]
    assert asset.file_url == "https://cdn.example.com/old.png"
    assert asset.design_id is None
    assert result.uploaded_urls == []
    assert not CustomDesign.objects.filter(order_number="PW-2026-00003").exists()


@pytest.mark.django_db
def test_dangling_library_reference_fails_and_discards_uploads(cart, variant):
    data = view_payload((0, "lib-1"), (1, "missing"))
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=data)
    store = RecordingStore()

    with pytest.raises(AssetMaterializationFailed) as excinfo:
        materialize_cart_designs(cart.user, [item], "PW-2026-00004", store=store)

    assert len(excinfo.value.failures) == 1
    assert "1 of 2 views" in excinfo.value.failures[0]
    assert len(store.issued) == 1
    assert not _stored(store.issued[0])
    assert not CustomDesign.objects.filter(order_number="PW-2026-00004").exists()


@pytest.mark.django_db
def test_database_error_on_a_later_line_discards_earlier_uploads(cart, variant, monkeypatch):
    uploaded = cart_line(variant, cart=cart, is_customized=True, customization_data=view_payload((0, "lib-1")))
    design = CustomDesignFactory(user=cart.user, product=variant.product)
    referenced = cart_line(variant, cart=cart, is_customized=True, custom_design=design)
    store = RecordingStore()

    def broken_lookup(self, payload, label, failures):
        raise DatabaseError("connection lost")

    monkeypatch.setattr(DesignMaterializer, "_from_reference", broken_lookup)

    with pytest.raises(DatabaseError):
        materialize_cart_designs(cart.user, [uploaded, referenced], "PW-2026-00012", store=store)

    assert len(store.issued) == 1
    assert not _stored(store.issued[0])
    assert not CustomDesign.objects.filter(order_number="PW-2026-00012").exists()


@pytest.mark.django_db
def test_failures_are_collected_across_lines(cart, variant):
    bad_library = [{"id": "lib-1", "name": "broken.png", "url": "data:image/png;base64,@@@"}]
    items = [
        cart_line(variant, cart=cart, position=0, is_customized=True, customization_data=view_payload((0, "lib-1"))),
        cart_line(
            variant,
            cart=cart,
            position=1,
            is_customized=True,
            customization_data=view_payload((0, "lib-1"), library=bad_library),
        ),
        cart_line(variant, cart=cart, position=2, is_customized=True, temp_designs={"front": {"preview": "data:,"}}),
    ]

    with pytest.raises(AssetMaterializationFailed) as excinfo:
        materialize_cart_designs(cart.user, items, "PW-2026-00005")

    failures = excinfo.value.failures
    assert any(f.startswith("Item 2") for f in failures)
    assert any(f.startswith("Item 3") for f in failures)
    assert not any(f.startswith("Item 1") for f in failures)
    # The good line's upload was rolled back too
    assert not CustomDesign.objects.filter(order_number="PW-2026-00005").exists()


@pytest.mark.django_db
def test_oversized_image_is_a_failure(cart, variant, settings):
    settings.DESIGN_MAX_UPLOAD_BYTES = 8
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=view_payload((0, "lib-1")))

    with pytest.raises(AssetMaterializationFailed) as excinfo:
        materialize_cart_designs(cart.user, [item], "PW-2026-00006")

    assert "limit is 8" in excinfo.value.failures[0]


@pytest.mark.django_db
def test_named_areas_upload_inline_data_and_keep_urls(cart, variant):
    temp = {
        "back": {"preview": "https://cdn.example.com/back.png", "isUrl": True, "fileName": "back.png"},
        "front": {
            "preview": data_url(mime="image/jpeg"),
            "fileName": "front.jpg",
            "customPosition": {"x": 5, "y": 5, "width": 50, "height": 50},
        },
    }
    item = cart_line(variant, cart=cart, is_customized=True, temp_designs=temp)

    result = materialize_cart_designs(cart.user, [item], "PW-2026-00007")

    line = result.lines[0]
    assert line.format == DesignFormat.NAMED
    front, back = line.assets
    assert (front.key, back.key) == ("front", "back")
    assert front.file_url.endswith(".jpg")
    assert "/item-0/front" in front.file_url
    assert back.file_url == "https://cdn.example.com/back.png"
    assert back.design_id is None
    design = CustomDesign.objects.get(id=front.design_id)
    assert design.design_type == "front"
    assert design.file_name == "front.jpg"
    assert design.print_area == {"x": 5.0, "y": 5.0, "width": 50.0, "height": 50.0}


@pytest.mark.django_db
def test_existing_design_reference_passes_through(cart, variant):
    design = CustomDesignFactory(user=cart.user, product=variant.product, design_type="view-1")
    item = cart_line(variant, cart=cart, is_customized=True, custom_design=design)

    result = materialize_cart_designs(cart.user, [item], "PW-2026-00008")

    asset = result.lines[0].assets[0]
    assert result.lines[0].format == DesignFormat.VIEWS
    assert (asset.key, asset.design_id, asset.file_url) == ("1", design.id, design.file_url)
    assert result.uploaded_urls == []


@pytest.mark.django_db
def test_plain_lines_produce_empty_lines(cart, variant):
    result = materialize_cart_designs(cart.user, [cart_line(variant, cart=cart)], "PW-2026-00009")
    assert result.lines[0].format == DesignFormat.NONE
    assert result.lines[0].designs_json() == []


@pytest.mark.django_db
def test_discard_removes_blobs_and_rows(cart, variant):
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=view_payload((0, "lib-1")))
    result = materialize_cart_designs(cart.user, [item], "PW-2026-00010")
    url = result.lines[0].assets[0].file_url

    result.discard()

    assert not _stored(url)
    assert not CustomDesign.objects.filter(order_number="PW-2026-00010").exists()
    assert result.uploaded_urls == []


class DictStore(ObjectStore):
    """Keeps blobs in a dict so uploads can run on worker threads."""

    def __init__(self):
        super().__init__()
        self.blobs = {}

    def put(self, path, data, *, public=True):
        self.blobs[path] = data
        return f"https://blob.printworks.test/{path}"


@pytest.mark.django_db
def test_concurrent_view_uploads(cart, variant):
    data = view_payload(*[(i, "lib-1") for i in range(4)])
    item = cart_line(variant, cart=cart, is_customized=True, customization_data=data)
    store = DictStore()

    result = DesignMaterializer(cart.user, "PW-2026-00011", store=store, max_workers=4).materialize([item])

    assert [a.key for a in result.lines[0].assets] == ["0", "1", "2", "3"]
    assert len(store.blobs) == 4
    assert all(blob == PNG_BYTES for blob in store.blobs.values())
    assert CustomDesign.objects.filter(order_number="PW-2026-00011").count() == 4
