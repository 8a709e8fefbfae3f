"""Admin registration for cart models.

Carts are shown with their lines inline for support.
"""

from django.contrib import admin, messages

from .models import Cart, CartItem
from .services import clear_cart


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = (
        "position",
        "product",
        "size",
        "color",
        "quantity",
        "is_customized",
        "unit_price",
        "customization_fee",
        "updated_at",
    )
    readonly_fields = ("updated_at",)
    raw_id_fields = ("product", "custom_design")


class CustomizedFilter(admin.SimpleListFilter):
    title = "customized lines"
    parameter_name = "customized"

    def lookups(self, request, model_admin):
        return (
            ("yes", "Has customized lines"),
            ("no", "Plain lines only"),
        )

    def queryset(self, request, queryset):
        value = self.value()
        if value == "yes":
            return queryset.filter(items__is_customized=True).distinct()
        if value == "no":
            return queryset.exclude(items__is_customized=True)
        return queryset


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "updated_at", "created_at")
    list_filter = (CustomizedFilter,)
    search_fields = ("user__username", "user__email")
    ordering = ("-updated_at",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [CartItemInline]
    autocomplete_fields = ("user",)
    list_select_related = ("user",)
    actions = ["action_clear_cart"]

    @admin.action(description="Delete cart and all its lines")
    def action_clear_cart(self, request, queryset):
        cleared = 0
        for cart in queryset.select_related("user"):
            clear_cart(user=cart.user)
            cleared += 1
        if cleared:
            messages.success(request, f"Cleared {cleared} cart(s).")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product", "size", "color", "quantity", "is_customized", "unit_price", "updated_at")
    list_filter = ("is_customized",)
    search_fields = ("product__name", "cart__user__email")
    ordering = ("cart", "position")
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("cart", "product", "custom_design")
