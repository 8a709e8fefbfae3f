"""Serializers for the catalog app (read-only)."""

from rest_framework import serializers

from .models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = ProductVariant
        fields = ["id", "size", "color", "sku", "stock", "in_stock"]

    def get_in_stock(self, obj: ProductVariant) -> bool:
        return obj.stock > 0


class ProductListSerializer(serializers.ModelSerializer):
    primary_image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "category",
            "base_price",
            "customization_fee",
            "allow_customization",
            "primary_image",
        ]

    def get_primary_image(self, obj: Product):
        return obj.images[0] if obj.images else None


class ProductDetailSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "category",
            "base_price",
            "customization_fee",
            "images",
            "allow_customization",
            "variants",
        ]
