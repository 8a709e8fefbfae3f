"""Seed a starter catalog of printable blanks for local development.

Re-running is idempotent; products are matched by slug and variants by SKU.
"""

from decimal import Decimal

from catalog.models import Product, ProductVariant
from common.choices import ProductCategory
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

PRODUCTS = [
    {
        "name": "Classic Cotton T-Shirt",
        "description": "Premium 100% cotton t-shirt, soft and durable, made for custom printing.",
        "category": ProductCategory.TSHIRT,
        "base_price": "499.00",
        "customization_fee": "200.00",
        "images": ["https://images.unsplash.com/photo-1521572163474-6864f9cf17ab?w=800"],
        "sku_prefix": "TSHIRT",
        "sizes": ["S", "M", "L", "XL"],
        "colors": ["White", "Black"],
        "stock": 60,
    },
    {
        "name": "Premium Oversized T-Shirt",
        "description": "Oversized streetwear fit in a premium cotton blend.",
        "category": ProductCategory.TSHIRT,
        "base_price": "699.00",
        "customization_fee": "250.00",
        "images": ["https://images.unsplash.com/photo-1622445275463-afa2ab738c34?w=800"],
        "sku_prefix": "OVER",
        "sizes": ["M", "L", "XL"],
        "colors": ["White", "Black"],
        "stock": 40,
    },
    {
        "name": "Ceramic Coffee Mug",
        "description": "11oz glossy ceramic mug with a full wraparound print area.",
        "category": ProductCategory.MUG,
        "base_price": "299.00",
        "customization_fee": "150.00",
        "images": ["https://images.unsplash.com/photo-1514228742587-6b1558fcca3d?w=800"],
        "sku_prefix": "MUG",
        "sizes": ["11oz"],
        "colors": ["White"],
        "stock": 120,
    },
    {
        "name": "Steel Water Bottle",
        "description": "Insulated 750ml stainless steel bottle.",
        "category": ProductCategory.BOTTLE,
        "base_price": "599.00",
        "customization_fee": "0.00",
        "images": ["https://images.unsplash.com/photo-1602143407151-7111542de6e8?w=800"],
        "sku_prefix": "BOTTLE",
        "sizes": ["750ml"],
        "colors": ["Silver", "Black"],
        "stock": 30,
    },
]


class Command(BaseCommand):
    help = "Seed starter catalog data (products with size/color variants)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")
        created_variants = 0
        for spec in PRODUCTS:
            product, _ = Product.objects.update_or_create(
                slug=slugify(spec["name"]),
                defaults={
                    "name": spec["name"],
                    "description": spec["description"],
                    "category": spec["category"],
                    "base_price": Decimal(spec["base_price"]),
                    "customization_fee": Decimal(spec["customization_fee"]),
                    "images": spec["images"],
                    "allow_customization": True,
                    "is_active": True,
                },
            )
            for color in spec["colors"]:
                for size in spec["sizes"]:
                    sku = f"{spec['sku_prefix']}-{color[0].upper()}-{size.upper()}"
                    _, created = ProductVariant.objects.get_or_create(
                        sku=sku,
                        defaults={"product": product, "size": size, "color": color, "stock": spec["stock"]},
                    )
                    created_variants += int(created)
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(PRODUCTS)} products, {created_variants} new variants."))
