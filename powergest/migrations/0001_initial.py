from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Purchase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product", models.CharField(max_length=255)),
                ("supplier", models.CharField(max_length=255)),
                (
                    "brand",
                    models.CharField(
                        choices=[
                            ("ENA", "ENA"),
                            ("Star", "Star"),
                            ("Body Advance", "Body Advance"),
                            ("Gentech", "Gentech"),
                            ("GoldNutrition", "GoldNutrition"),
                            ("Growsbar", "Growsbar"),
                        ],
                        default="ENA",
                        max_length=50,
                    ),
                ),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantity", models.PositiveIntegerField()),
                ("date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["product", "supplier"], name="purchase_product_supplier_idx")],
            },
        ),
        migrations.CreateModel(
            name="Sale",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product", models.CharField(max_length=255)),
                ("supplier", models.CharField(max_length=255)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantity", models.PositiveIntegerField()),
                ("customer", models.CharField(max_length=255)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("efectivo", "Efectivo"),
                            ("tarjeta", "Tarjeta"),
                            ("transferencia", "Transferencia"),
                            ("mercadopago", "MercadoPago"),
                        ],
                        max_length=20,
                    ),
                ),
                ("is_paid", models.BooleanField(default=False)),
                ("handled_by", models.CharField(help_text="Usuario a cargo", max_length=100)),
                ("date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["product", "supplier"], name="sale_product_supplier_idx")],
            },
        ),
        migrations.CreateModel(
            name="Stock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product", models.CharField(max_length=255)),
                ("supplier", models.CharField(max_length=255)),
                ("sale_unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("quantity_sold", models.IntegerField(default=0)),
                ("quantity_purchased", models.IntegerField(default=0)),
                ("quantity_total", models.IntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["product", "supplier"],
                "unique_together": {("product", "supplier")},
            },
        ),
        migrations.CreateModel(
            name="ConfigEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.TextField(blank=True, default="")),
            ],
            options={"ordering": ["key"]},
        ),
    ]
