from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Checkout pipeline and order lifecycle."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
