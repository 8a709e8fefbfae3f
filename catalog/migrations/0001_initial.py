from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=220, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "category",
                    models.CharField(
                        choices=[("t-shirt", "T-Shirt"), ("shirt", "Shirt"), ("mug", "Mug"), ("bottle", "Bottle")],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                ("base_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("customization_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("images", models.JSONField(blank=True, default=list)),
                ("allow_customization", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(check=models.Q(base_price__gte=0), name="product_base_price_non_negative"),
                    models.CheckConstraint(
                        check=models.Q(customization_fee__gte=0), name="product_customization_fee_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("size", models.CharField(max_length=32)),
                ("color", models.CharField(max_length=64)),
                ("stock", models.PositiveIntegerField(default=0)),
                ("sku", models.CharField(max_length=64, unique=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="variants", to="catalog.product"
                    ),
                ),
            ],
            options={
                "ordering": ["product_id", "size", "color"],
                "indexes": [models.Index(fields=["product", "size", "color"], name="variant_lookup_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "size", "color"), name="unique_size_color_per_product"),
                    models.CheckConstraint(check=models.Q(stock__gte=0), name="variant_stock_non_negative"),
                ],
            },
        ),
    ]
