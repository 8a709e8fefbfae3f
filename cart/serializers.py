"""Cart serializers for read and write operations."""

from common.serializers import AliasedFieldsMixin
from designs.payloads import NAMED_AREAS
from rest_framework import serializers

from .models import CartItem
from .selectors import cart_totals


def validate_view_payload(value):
    if not isinstance(value, dict):
        raise serializers.ValidationError("Must be an object")
    views = value.get("viewDesigns")
    library = value.get("designLibrary", [])
    if not isinstance(views, dict) or not views:
        raise serializers.ValidationError("viewDesigns must be a non-empty object")
    if not isinstance(library, list):
        raise serializers.ValidationError("designLibrary must be a list")
    for key, view in views.items():
        if not str(key).isdigit():
            raise serializers.ValidationError(f"View key {key!r} must be a view number")
        if not isinstance(view, dict) or not view.get("designId"):
            raise serializers.ValidationError(f"View {key} needs a designId")
    for entry in library:
        if not isinstance(entry, dict) or not entry.get("id") or not isinstance(entry.get("url"), str):
            raise serializers.ValidationError("Each designLibrary entry needs an id and a url")
    return value


def validate_named_payload(value):
    if not isinstance(value, dict):
        raise serializers.ValidationError("Must be an object")
    unknown = set(value) - set(NAMED_AREAS) - {"notes"}
    if unknown:
        raise serializers.ValidationError(f"Unknown design areas: {', '.join(sorted(unknown))}")
    for area in NAMED_AREAS:
        slot = value.get(area)
        if slot is None:
            continue
        if not isinstance(slot, dict) or not isinstance(slot.get("preview"), str) or not slot["preview"]:
            raise serializers.ValidationError(f"{area} needs a preview image")
    return value


class CartProductSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    slug = serializers.CharField()
    category = serializers.CharField()
    images = serializers.JSONField()
    allow_customization = serializers.BooleanField()


class CartItemReadSerializer(serializers.ModelSerializer):
    """Read serializer for a cart line, enriched with product data."""

    index = serializers.IntegerField(source="position", read_only=True)
    product = CartProductSerializer(allow_null=True)
    custom_design_id = serializers.IntegerField(allow_null=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = [
            "index",
            "product",
            "size",
            "color",
            "quantity",
            "is_customized",
            "custom_design_id",
            "customization_data",
            "temp_designs",
            "unit_price",
            "customization_fee",
            "line_total",
            "in_stock",
        ]

    def get_in_stock(self, obj) -> bool:
        if obj.product is None:
            return False
        for variant in obj.product.variants.all():
            if variant.size == obj.size and variant.color == obj.color:
                return variant.stock >= obj.quantity
        return False


class CartReadSerializer(serializers.Serializer):
    """Read serializer for the cart summary and items."""

    items = CartItemReadSerializer(many=True)
    item_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    updated_at = serializers.DateTimeField(allow_null=True)

    @classmethod
    def from_cart(cls, *, cart):
        items = list(cart.items.all()) if cart else []
        return cls({"items": items, "updated_at": cart.updated_at if cart else None, **cart_totals(items)})


class AddItemSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Write serializer for adding a line to the cart."""

    aliases = {
        "productId": "product_id",
        "isCustomized": "is_customized",
        "customDesignId": "custom_design_id",
        "customizationData": "customization_data",
        "tempDesigns": "temp_designs",
    }

    product_id = serializers.IntegerField()
    size = serializers.CharField(max_length=32)
    color = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    is_customized = serializers.BooleanField(default=False)
    custom_design_id = serializers.IntegerField(required=False, allow_null=True)
    customization_data = serializers.JSONField(required=False, allow_null=True)
    temp_designs = serializers.JSONField(required=False, allow_null=True)

    def to_internal_value(self, data):
        # Older clients nest the variant: {"variant": {"size": .., "color": ..}}
        if hasattr(data, "get") and isinstance(data.get("variant"), dict):
            data = {**data, **{k: v for k, v in data["variant"].items() if k in ("size", "color")}}
        return super().to_internal_value(data)

    def validate_customization_data(self, value):
        return validate_view_payload(value) if value is not None else None

    def validate_temp_designs(self, value):
        return validate_named_payload(value) if value is not None else None

    def validate(self, attrs):
        sources = [k for k in ("custom_design_id", "customization_data", "temp_designs") if attrs.get(k)]
        if len(sources) > 1:
            raise serializers.ValidationError("Provide only one of custom_design_id, customization_data, temp_designs")
        if sources:
            attrs["is_customized"] = True
        return attrs


class UpdateItemQuantitySerializer(AliasedFieldsMixin, serializers.Serializer):
    aliases = {"itemIndex": "item_index"}

    item_index = serializers.IntegerField(min_value=0)
    quantity = serializers.IntegerField()


class UpdateCustomizationSerializer(AliasedFieldsMixin, serializers.Serializer):
    aliases = {"itemIndex": "item_index", "customizationData": "customization_data"}

    item_index = serializers.IntegerField(min_value=0)
    customization_data = serializers.JSONField()

    def validate_customization_data(self, value):
        return validate_view_payload(value)
