from decimal import Decimal

from django.db import models


class Brand(models.TextChoices):
    ENA = "ENA", "ENA"
    STAR = "Star", "Star"
    BODY_ADVANCE = "Body Advance", "Body Advance"
    GENTECH = "Gentech", "Gentech"
    GOLD_NUTRITION = "GoldNutrition", "GoldNutrition"
    GROWSBAR = "Growsbar", "Growsbar"


class Purchase(models.Model):
    product = models.CharField(max_length=255)
    supplier = models.CharField(max_length=255)
    brand = models.CharField(max_length=50, choices=Brand.choices, default=Brand.ENA)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["product", "supplier"], name="purchase_product_supplier_idx")]

    def __str__(self) -> str:
        return f"Compra #{self.pk} - {self.product} ({self.supplier}) x {self.quantity}"

    @property
    def total(self) -> Decimal:
        return (self.unit_cost or Decimal("0.00")) * self.quantity


class Sale(models.Model):
    class PaymentMethod(models.TextChoices):
        CASH = "efectivo", "Efectivo"
        CARD = "tarjeta", "Tarjeta"
        TRANSFER = "transferencia", "Transferencia"
        MERCADOPAGO = "mercadopago", "MercadoPago"

    product = models.CharField(max_length=255)
    supplier = models.CharField(max_length=255)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    customer = models.CharField(max_length=255)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    is_paid = models.BooleanField(default=False)
    handled_by = models.CharField(max_length=100, help_text="Usuario a cargo")
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["product", "supplier"], name="sale_product_supplier_idx")]

    def __str__(self) -> str:
        return f"Venta #{self.pk} - {self.product} ({self.supplier}) x {self.quantity}"

    @property
    def total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * self.quantity


class Stock(models.Model):
    product = models.CharField(max_length=255)
    supplier = models.CharField(max_length=255)
    sale_unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    quantity_sold = models.IntegerField(default=0)
    quantity_purchased = models.IntegerField(default=0)
    quantity_total = models.IntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("product", "supplier")
        ordering = ["product", "supplier"]

    def __str__(self) -> str:
        return f"{self.product} ({self.supplier}): {self.quantity_total}"


class ConfigEntry(models.Model):
    ADMIN_PASSWORD = "admin_password"

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key
