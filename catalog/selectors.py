"""Selectors for the catalog domain.

Read-only query helpers shared by the catalog API, the cart, and the order
pipeline. Selectors return querysets or model instances and have no side
effects.
"""

from typing import Iterable, Optional

from django.db.models import Prefetch, Q, QuerySet

from .models import Product, ProductVariant


def list_products(
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
    ordering: Optional[Iterable[str]] = None,
    include_inactive: bool = False,
) -> QuerySet[Product]:
    """Return products with variants prefetched."""

    qs = Product.objects.prefetch_related(
        Prefetch("variants", queryset=ProductVariant.objects.order_by("size", "color"))
    )
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if category:
        qs = qs.filter(category=category)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))

    ordering = list(ordering or ("name",))
    return qs.order_by(*ordering)


def get_product_by_slug(slug: str) -> Optional[Product]:
    """Return a single active product by slug, or None if not found."""

    try:
        return list_products().get(slug=slug)
    except Product.DoesNotExist:
        return None


def get_products_by_ids(product_ids: Iterable[int]) -> dict[int, Product]:
    """Return ``{id: product}`` for the given ids with variants prefetched.

    Inactive products are included; callers decide how to treat them.
    """

    ids = {int(pid) for pid in product_ids}
    if not ids:
        return {}
    return {p.id: p for p in list_products(include_inactive=True).filter(id__in=ids)}


def find_variant(product: Product, *, size: str, color: str) -> Optional[ProductVariant]:
    """Match a variant by (size, color) using the prefetched variant list when present."""

    for variant in product.variants.all():
        if variant.size == size and variant.color == color:
            return variant
    return None
