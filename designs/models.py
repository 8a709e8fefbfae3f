"""Custom design models.

A ``CustomDesign`` is the durable record of one piece of customer artwork
placed on one view (or named print area) of a product. Rows are created when
an order is placed and removed by the retention sweep.
"""

from common.choices import DesignStatus
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class CustomDesign(TimeStampedModel):
    STATUS_PENDING = DesignStatus.PENDING
    STATUS_APPROVED = DesignStatus.APPROVED
    STATUS_REJECTED = DesignStatus.REJECTED
    STATUS_CHOICES = DesignStatus.choices

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="custom_designs", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="custom_designs", on_delete=models.CASCADE)
    file_url = models.URLField(max_length=500)
    file_name = models.CharField(max_length=255, blank=True)
    file_type = models.CharField(max_length=64, blank=True)
    file_size = models.PositiveIntegerField(default=0)
    width = models.PositiveIntegerField(default=0)
    height = models.PositiveIntegerField(default=0)
    # Rectangles are percentages of a normalized canvas: {x, y, width, height[, rotation]}
    print_area = models.JSONField(default=dict, blank=True)
    custom_position = models.JSONField(null=True, blank=True)
    preview_url = models.URLField(max_length=500, blank=True)
    design_type = models.CharField(max_length=32, blank=True, help_text="view-N or front/back/wraparound/preview")
    order_number = models.CharField(max_length=32, blank=True, db_index=True)
    saved_to_library = models.BooleanField(default=False)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    class Meta:
        ordering = ["-created_at", "id"]
        indexes = [
            models.Index(fields=["user", "saved_to_library"], name="design_user_library_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CustomDesign#{self.id} {self.design_type} order={self.order_number or '-'}"
