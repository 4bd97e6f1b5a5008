from django.contrib import admin

from .models import Purchase, Sale, Stock


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ("product", "supplier", "brand", "unit_cost", "quantity", "date", "created_at")
    list_filter = ("brand", "supplier")
    search_fields = ("product", "supplier")
    readonly_fields = ("created_at",)


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "supplier",
        "unit_price",
        "quantity",
        "customer",
        "payment_method",
        "is_paid",
        "handled_by",
        "date",
    )
    list_filter = ("payment_method", "is_paid", "handled_by")
    search_fields = ("product", "supplier", "customer")
    readonly_fields = ("created_at",)


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "supplier",
        "quantity_purchased",
        "quantity_sold",
        "quantity_total",
        "sale_unit_price",
        "updated_at",
    )
    search_fields = ("product", "supplier")
    readonly_fields = ("quantity_purchased", "quantity_sold", "quantity_total", "updated_at")
