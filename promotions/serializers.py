from common.serializers import AliasedFieldsMixin
from rest_framework import serializers


class PromoValidateSerializer(AliasedFieldsMixin, serializers.Serializer):
    aliases = {"orderValue": "order_value"}

    code = serializers.CharField(max_length=32)
    order_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class PromoResultSerializer(serializers.Serializer):
    valid = serializers.BooleanField(default=True)
    code = serializers.CharField()
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(allow_blank=True)
