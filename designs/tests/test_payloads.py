from types import SimpleNamespace

import pytest
from designs.payloads import (
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
from designs.tests.factories import PNG_BYTES, data_url, view_payload


def _item(**kwargs):
    defaults = {"custom_design_id": None, "customization_data": None, "temp_designs": None}
    return SimpleNamespace(**{**defaults, **kwargs})


def test_plain_line_has_no_payload():
    assert parse_cart_item_payload(_item()) is None


def test_reference_takes_precedence():
    payload = parse_cart_item_payload(_item(custom_design_id=7, customization_data=view_payload((0, "lib-1"))))
    assert payload == DesignReference(design_id=7)


def test_view_payload_is_parsed_in_view_order():
    data = view_payload((2, "lib-1"), (0, "lib-1"), notes="Centre it")
    data["viewDesigns"]["2"]["previewImage"] = data_url()

    payload = parse_cart_item_payload(_item(customization_data=data))

    assert isinstance(payload, ViewDesignPayload)
    assert [p.view_index for p in payload.placements] == [0, 2]
    assert payload.expected_count == 2
    assert payload.notes == "Centre it"
    assert payload.library["lib-1"].name == "logo.png"
    assert payload.placements[0].position == Position(x=10, y=20, width=30, height=40)
    assert payload.placements[1].preview_source.startswith("data:image/png")


def test_named_payload_skips_empty_areas_and_flags_urls():
    temp = {
        "front": {"preview": data_url(), "fileName": "front.png"},
        "back": {"preview": "https://cdn.example.com/back.png"},
        "wraparound": None,
        "notes": "Gloss finish",
    }

    payload = parse_cart_item_payload(_item(temp_designs=temp))

    assert isinstance(payload, NamedAreaPayload)
    assert [slot.area for slot in payload.slots] == ["front", "back"]
    assert payload.slots[0].is_url is False
    assert payload.slots[1].is_url is True
    assert payload.notes == "Gloss finish"


def test_decode_data_url():
    mime, raw = decode_data_url(data_url())
    assert mime == "image/png"
    assert raw == PNG_BYTES
    assert extension_for(mime) == ".png"
    assert extension_for("image/jpeg") == ".jpg"


@pytest.mark.parametrize(
    "value",
    ["https://cdn.example.com/a.png", "data:image/png;base64,@@@", "data:image/png;base64,", "data:image/png,abc"],
)
def test_decode_rejects_bad_input(value):
    with pytest.raises(DesignDecodeError):
        decode_data_url(value)


def test_is_data_url():
    assert is_data_url(data_url())
    assert not is_data_url("https://cdn.example.com/a.png")
    assert not is_data_url(None)
