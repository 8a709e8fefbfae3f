"""DRF serializers for Orders.

Order lines store their designs in one normalized list. The API renders that
list back in the shape the line was submitted in: ``{"viewDesigns": {...}}``
for numbered views, or ``{"front": {...}, ...}`` for named areas.
"""

from common.choices import DesignFormat, PaymentMethod
from common.serializers import AliasedFieldsMixin
from rest_framework import serializers

from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)
    designs = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "name",
            "size",
            "color",
            "quantity",
            "is_customized",
            "design_format",
            "designs",
            "notes",
            "unit_price",
            "customization_fee",
            "item_total",
        ]
        read_only_fields = fields

    def get_designs(self, obj: OrderItem):
        assets = {asset["key"]: asset for asset in obj.designs or []}
        if obj.design_format == DesignFormat.VIEWS:
            return {"viewDesigns": assets}
        if obj.design_format == DesignFormat.NAMED:
            return assets
        return None


class OrderSerializer(serializers.ModelSerializer):
    """API representation for an order. Totals are the stored values."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_method",
            "payment_status",
            "razorpay_order_id",
            "razorpay_payment_id",
            "manual_payment_details",
            "shipping_address",
            "items",
            "subtotal",
            "shipping",
            "discount",
            "promo_code",
            "total",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ShippingAddressSerializer(AliasedFieldsMixin, serializers.Serializer):
    aliases = {"postal_code": "postalCode", "fullName": "name"}

    name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    house = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    street = serializers.CharField(max_length=200)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    postalCode = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100, default="India")


class ManualPaymentSerializer(AliasedFieldsMixin, serializers.Serializer):
    aliases = {"transaction_id": "transactionId", "screenshot_url": "screenshotUrl"}

    transactionId = serializers.CharField(max_length=100)
    screenshotUrl = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")
    method = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")


class OrderCreateSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Checkout request. Prices and lines always come from the server-held cart."""

    aliases = {
        "paymentMethod": "payment_method",
        "shippingInfo": "shipping_address",
        "shippingAddress": "shipping_address",
        "promoCode": "promo_code",
        "razorpayOrderId": "razorpay_order_id",
        "razorpayPaymentId": "razorpay_payment_id",
        "razorpaySignature": "razorpay_signature",
        "manualPaymentDetails": "manual_payment_details",
    }

    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    shipping_address = ShippingAddressSerializer()
    promo_code = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    razorpay_order_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    razorpay_payment_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    razorpay_signature = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    manual_payment_details = ManualPaymentSerializer(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        method = attrs["payment_method"]
        if method in (PaymentMethod.MANUAL_UPI, PaymentMethod.MANUAL_QR):
            details = attrs.get("manual_payment_details")
            if not details:
                raise serializers.ValidationError({"manual_payment_details": "Payment proof is required"})
            details["method"] = details.get("method") or method
        else:
            attrs["manual_payment_details"] = None
        return attrs

    def pipeline_kwargs(self) -> dict:
        data = self.validated_data
        gateway = None
        if data["payment_method"] == PaymentMethod.RAZORPAY:
            gateway = {
                "order_id": data["razorpay_order_id"],
                "payment_id": data["razorpay_payment_id"],
                "signature": data["razorpay_signature"],
            }
        return {
            "payment_method": data["payment_method"],
            "shipping_address": dict(data["shipping_address"]),
            "promo_code": data["promo_code"],
            "gateway": gateway,
            "manual_payment": dict(data["manual_payment_details"]) if data["manual_payment_details"] else None,
        }


class OrderAdminUpdateSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Admin status change. Values are checked by the order services."""

    aliases = {"orderStatus": "status", "paymentStatus": "payment_status"}

    status = serializers.CharField(max_length=16, required=False)
    payment_status = serializers.CharField(max_length=16, required=False)

    def validate(self, attrs):
        if not attrs.get("status") and not attrs.get("payment_status"):
            raise serializers.ValidationError("Provide status or payment_status")
        return attrs
