"""Staff-only order routes (v1)."""

from django.urls import path

from .views import AdminOrderUpdateView

app_name = "admin_orders"

urlpatterns = [
    path("<str:order_number>/", AdminOrderUpdateView.as_view(), name="admin-order-update"),
]
