from common.exceptions import ValidationError
from django.contrib import admin, messages

from .models import Order, OrderItem
from .services import update_order_status


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = (
        "name",
        "size",
        "color",
        "quantity",
        "is_customized",
        "design_format",
        "unit_price",
        "customization_fee",
        "item_total",
    )
    readonly_fields = fields
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "status", "payment_method", "payment_status", "total", "created_at")
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    search_fields = ("order_number", "user__email", "razorpay_payment_id")
    date_hierarchy = "created_at"
    inlines = [OrderItemInline]
    readonly_fields = (
        "order_number",
        "user",
        "subtotal",
        "shipping",
        "discount",
        "promo_code",
        "total",
        "design_assets_purged_at",
        "created_at",
        "updated_at",
    )
    actions = ["mark_processing", "mark_shipped", "mark_delivered", "mark_cancelled"]

    def _transition(self, request, queryset, new_status):
        changed = 0
        for order in queryset:
            try:
                update_order_status(order, new_status, actor=f"staff:{request.user.id}")
                changed += 1
            except ValidationError as exc:
                messages.error(request, f"{order.order_number}: {exc.detail}")
        if changed:
            messages.success(request, f"Updated {changed} order(s) to {new_status}.")

    @admin.action(description="Mark selected orders as processing")
    def mark_processing(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_PROCESSING)

    @admin.action(description="Mark selected orders as shipped")
    def mark_shipped(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_SHIPPED)

    @admin.action(description="Mark selected orders as delivered")
    def mark_delivered(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_DELIVERED)

    @admin.action(description="Cancel selected orders (restores stock)")
    def mark_cancelled(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_CANCELLED)
