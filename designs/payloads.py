"""Design payload shapes carried by cart lines.

A cart line supplies its artwork in one of three ways, parsed once into a
tagged union:

- :class:`DesignReference`: a design that already has a durable record.
- :class:`ViewDesignPayload`: the customization workspace format. A small
  library of images plus, per numbered product view, a reference into that
  library with a position rectangle.
- :class:`NamedAreaPayload`: the older format with up to four named print
  areas (front, back, wraparound, preview).

Image sources are either inline ``data:<mime>;base64,<payload>`` strings or
plain http(s) URLs that were stored earlier.
"""

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass
from typing import Optional, Union

NAMED_AREAS = ("front", "back", "wraparound", "preview")

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]+)*);base64,(?P<data>.*)$", re.S)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/svg+xml": ".svg",
}


class DesignDecodeError(ValueError):
    """An inline image could not be decoded."""


@dataclass(frozen=True)
class Position:
    """Placement rectangle as percentages of a normalized canvas."""

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Position"]:
        if not data:
            return None
        return cls(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
            rotation=float(data.get("rotation") or 0),
        )

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height, "rotation": self.rotation}

    def print_area(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class DesignReference:
    design_id: int


@dataclass(frozen=True)
class LibraryImage:
    id: str
    name: str
    source: str
    file_type: str = ""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class ViewPlacement:
    view_index: int
    design_id: str
    position: Optional[Position]
    preview_source: str = ""


@dataclass(frozen=True)
class ViewDesignPayload:
    placements: tuple[ViewPlacement, ...]
    library: dict[str, LibraryImage]
    notes: str = ""

    @property
    def expected_count(self) -> int:
        return len(self.placements)


@dataclass(frozen=True)
class NamedAreaSlot:
    area: str
    source: str
    position: Optional[Position]
    file_name: str = ""
    file_type: str = ""
    is_url: bool = False


@dataclass(frozen=True)
class NamedAreaPayload:
    slots: tuple[NamedAreaSlot, ...]
    notes: str = ""

    @property
    def expected_count(self) -> int:
        return len(self.slots)


DesignPayload = Union[DesignReference, ViewDesignPayload, NamedAreaPayload]


def is_data_url(value: str) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Return ``(mime_type, raw_bytes)`` for a base64 data URL."""
    match = _DATA_URL.match(value or "")
    if not match:
        raise DesignDecodeError("not a base64 data URL")
    mime = (match.group("mime") or "application/octet-stream").lower()
    try:
        raw = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DesignDecodeError(f"invalid base64 payload: {exc}") from exc
    if not raw:
        raise DesignDecodeError("empty image payload")
    return mime, raw


def extension_for(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"


def parse_view_payload(data: dict) -> ViewDesignPayload:
    library = {}
    for entry in data.get("designLibrary") or []:
        image = LibraryImage(
            id=str(entry.get("id", "")),
            name=str(entry.get("name") or ""),
            source=str(entry.get("url") or ""),
            file_type=str(entry.get("fileType") or ""),
            width=int(entry.get("width") or 0),
            height=int(entry.get("height") or 0),
        )
        library[image.id] = image
    placements = []
    for key, view in sorted((data.get("viewDesigns") or {}).items(), key=lambda kv: int(kv[0])):
        placements.append(
            ViewPlacement(
                view_index=int(key),
                design_id=str(view.get("designId", "")),
                position=Position.from_dict(view.get("customPosition")),
                preview_source=str(view.get("previewImage") or ""),
            )
        )
    return ViewDesignPayload(placements=tuple(placements), library=library, notes=str(data.get("notes") or ""))


def parse_named_payload(data: dict) -> NamedAreaPayload:
    slots = []
    for area in NAMED_AREAS:
        slot = data.get(area)
        if not slot or not slot.get("preview"):
            continue
        source = str(slot["preview"])
        slots.append(
            NamedAreaSlot(
                area=area,
                source=source,
                position=Position.from_dict(slot.get("customPosition")),
                file_name=str(slot.get("fileName") or ""),
                file_type=str(slot.get("fileType") or ""),
                is_url=bool(slot.get("isUrl")) or not is_data_url(source),
            )
        )
    return NamedAreaPayload(slots=tuple(slots), notes=str(data.get("notes") or ""))


def parse_cart_item_payload(item) -> Optional[DesignPayload]:
    """Resolve a cart line's artwork into exactly one payload shape.

    Precedence: stored design reference, then workspace views, then named
    areas. Returns None for plain (uncustomized) lines.
    """
    if getattr(item, "custom_design_id", None):
        return DesignReference(design_id=int(item.custom_design_id))
    data = getattr(item, "customization_data", None) or {}
    if data.get("viewDesigns"):
        return parse_view_payload(data)
    temp = getattr(item, "temp_designs", None) or {}
    if any(temp.get(area) for area in NAMED_AREAS):
        return parse_named_payload(temp)
    return None
