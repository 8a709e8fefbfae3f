from django.urls import path

from .views import PromoCodeValidateView

urlpatterns = [
    path("validate/", PromoCodeValidateView.as_view(), name="promo-validate"),
]
