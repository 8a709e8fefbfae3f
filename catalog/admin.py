"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("size", "color", "sku", "stock")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "category", "base_price", "customization_fee", "is_active")
    search_fields = ("name", "slug")
    list_filter = ("category", "is_active", "allow_customization")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("product", "sku", "size", "color", "stock")
    search_fields = ("sku", "product__name")
    list_filter = ("size", "color")
    raw_id_fields = ("product",)
