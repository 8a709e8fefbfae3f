"""URL routes for the catalog app."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ProductViewSet

router = SimpleRouter()
router.register(r"", ProductViewSet, basename="product")

urlpatterns = [path("", include(router.urls))]
