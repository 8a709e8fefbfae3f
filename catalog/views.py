"""Read-only catalog endpoints."""

from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets
from rest_framework.throttling import AnonRateThrottle, ScopedRateThrottle, UserRateThrottle

from . import selectors
from .models import Product
from .serializers import ProductDetailSerializer, ProductListSerializer


class ProductFilterSet(filters.FilterSet):
    category = filters.ChoiceFilter(field_name="category", choices=Product.CATEGORY_CHOICES)

    class Meta:
        model = Product
        fields = ["category"]


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description=(
            "Returns active products. Supports filtering by `category`, ordering by `name`, `base_price` or "
            "`created_at`, and text search via `search`."
        ),
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, location="query", description="t-shirt, shirt, mug, bottle"),
            OpenApiParameter("ordering", OpenApiTypes.STR, location="query", description="Sort field"),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search name/description"),
        ],
    ),
    retrieve=extend_schema(
        summary="Get product by slug",
        description="Returns an active product with its size/color variants and stock",
        tags=["Catalog Endpoints"],
        examples=[
            OpenApiExample(
                "Product",
                value={
                    "id": 1,
                    "name": "Classic Cotton T-Shirt",
                    "slug": "classic-cotton-t-shirt",
                    "description": "Premium 100% cotton t-shirt.",
                    "category": "t-shirt",
                    "base_price": "499.00",
                    "customization_fee": "200.00",
                    "images": ["https://images.example.com/tshirt.jpg"],
                    "allow_customization": True,
                    "variants": [{"id": 3, "size": "M", "color": "White", "sku": "TSHIRT-W-M", "stock": 100}],
                },
                response_only=True,
            )
        ],
    ),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    lookup_field = "slug"
    lookup_value_regex = "[^/]+"
    filterset_class = ProductFilterSet
    throttle_scope = "catalog"
    throttle_classes = [ScopedRateThrottle, UserRateThrottle, AnonRateThrottle]
    filter_backends = [filters.DjangoFilterBackend, drf_filters.OrderingFilter, drf_filters.SearchFilter]
    ordering_fields = ["name", "base_price", "created_at"]
    search_fields = ["name", "description"]

    def get_queryset(self):
        return selectors.list_products()

    def get_serializer_class(self):
        return ProductDetailSerializer if self.action == "retrieve" else ProductListSerializer
