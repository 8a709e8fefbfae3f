from django.contrib import admin

from .models import CustomDesign


@admin.register(CustomDesign)
class CustomDesignAdmin(admin.ModelAdmin):
    list_display = ("id", "order_number", "design_type", "user", "product", "status", "created_at")
    list_filter = ("status", "design_type", "saved_to_library", "created_at")
    search_fields = ("order_number", "file_name", "user__email")
    raw_id_fields = ("user", "product")
    date_hierarchy = "created_at"
    actions = ["approve", "reject"]

    @admin.action(description="Approve selected designs")
    def approve(self, request, queryset):
        updated = queryset.update(status=CustomDesign.STATUS_APPROVED)
        self.message_user(request, f"Approved {updated} designs.")

    @admin.action(description="Reject selected designs")
    def reject(self, request, queryset):
        updated = queryset.update(status=CustomDesign.STATUS_REJECTED)
        self.message_user(request, f"Rejected {updated} designs.")
