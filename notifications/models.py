from common.choices import NotificationType
from django.db import models


class Notification(models.Model):
    """Admin-facing alert about an order event."""

    type = models.CharField(max_length=32, choices=NotificationType.choices, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField()
    order_id = models.BigIntegerField(null=True, blank=True)
    order_number = models.CharField(max_length=32, blank=True, db_index=True)
    is_read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.get_type_display()}: {self.order_number}"
