"""URL routes for the cart app (v1)."""

from django.urls import path

from .views import CartCustomizationView, CartView

app_name = "cart"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("customization/", CartCustomizationView.as_view(), name="cart-customization"),
]
