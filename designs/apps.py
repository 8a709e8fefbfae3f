"""Django app configuration for custom designs."""

from django.apps import AppConfig


class DesignsConfig(AppConfig):
    """Customer artwork: materialization at checkout and retention cleanup."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "designs"
