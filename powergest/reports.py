from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from .models import Purchase, Sale, Stock

CASH_PRODUCT = "Dinero de caja"
NO_BRAND = "Sin marca"
MONTH_NAMES = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]

BRAND_COLORS = {
    "ENA": "hsl(217, 91%, 60%)",
    "Star": "hsl(142, 71%, 45%)",
    "Body Advance": "hsl(0, 84%, 60%)",
    "Gentech": "hsl(217, 71%, 35%)",
    "GoldNutrition": "hsl(45, 93%, 47%)",
    "Growsbar": "hsl(0, 0%, 45%)",
    NO_BRAND: "hsl(0, 0%, 83%)",
}
DEFAULT_BRAND_COLOR = "hsl(0, 0%, 50%)"
PAYMENT_COLORS = ["hsl(0, 0%, 90%)", "hsl(0, 0%, 70%)", "hsl(0, 0%, 50%)", "hsl(0, 0%, 30%)"]
CLIENT_COLORS = ["hsl(0, 0%, 85%)", "hsl(0, 0%, 65%)", "hsl(0, 0%, 45%)", "hsl(0, 0%, 25%)"]


class UnknownChartError(ValueError):
    """Raised when a chart type is not supported."""


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent_change(current: Decimal, previous: Decimal) -> int:
    if previous <= 0:
        return 0
    return _round((current - previous) / previous * Decimal("100"))


def _sum_totals(records) -> Decimal:
    return sum((record.total for record in records), Decimal("0.00"))


def dashboard_stats(today: date | None = None) -> dict:
    today = today or timezone.localdate()
    week_ago = today - timedelta(days=7)
    two_weeks_ago = week_ago - timedelta(days=7)

    sales = list(Sale.objects.only("unit_price", "quantity", "date"))
    purchases = list(Purchase.objects.only("unit_cost", "quantity", "date"))

    total_income = _sum_totals(sales)
    total_purchases = _sum_totals(purchases)
    available = sum(
        max(0, quantity)
        for quantity in Stock.objects.exclude(product=CASH_PRODUCT).values_list("quantity_total", flat=True)
    )

    net_profit = total_income - total_purchases

    sales_today = _sum_totals(s for s in sales if s.date == today)
    sales_week = _sum_totals(s for s in sales if s.date >= week_ago)
    sales_prev_week = _sum_totals(s for s in sales if two_weeks_ago <= s.date < week_ago)
    purchases_prev_week = _sum_totals(p for p in purchases if two_weeks_ago <= p.date < week_ago)

    # Running totals against the week before last week.
    return {
        "totalIngresos": total_income,
        "totalCompras": total_purchases,
        "gananciaNet": net_profit,
        "stockDisponible": available,
        "ventasHoy": sales_today,
        "ventasSemana": sales_week,
        "ingresosPercentChange": _percent_change(total_income, sales_prev_week),
        "gananciaPercentChange": _percent_change(net_profit, sales_prev_week - purchases_prev_week),
    }


def sales_chart(months: int = 6) -> list[dict]:
    monthly = defaultdict(lambda: {"ventas": Decimal("0.00"), "compras": Decimal("0.00")})
    for sale in Sale.objects.only("unit_price", "quantity", "date"):
        monthly[(sale.date.year, sale.date.month)]["ventas"] += sale.total
    for purchase in Purchase.objects.only("unit_cost", "quantity", "date"):
        monthly[(purchase.date.year, purchase.date.month)]["compras"] += purchase.total

    return [
        {
            "name": MONTH_NAMES[month - 1],
            "ventas": _round(data["ventas"]),
            "compras": _round(data["compras"]),
        }
        for (_, month), data in sorted(monthly.items())[-months:]
    ]


def top_products_chart(limit: int = 5) -> list[dict]:
    units = defaultdict(int)
    for product, quantity in Sale.objects.order_by("created_at", "id").values_list("product", "quantity"):
        units[product] += quantity
    ranking = sorted(units.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [{"name": name, "value": value} for name, value in ranking]


def top_brands_chart() -> list[dict]:
    newest_brand = {}
    for purchase in Purchase.objects.order_by("created_at", "id").only("product", "supplier", "brand"):
        newest_brand[(purchase.product, purchase.supplier)] = purchase.brand

    units = defaultdict(int)
    for product, supplier, quantity in Sale.objects.order_by("created_at", "id").values_list(
        "product", "supplier", "quantity"
    ):
        units[newest_brand.get((product, supplier), NO_BRAND)] += quantity

    ranking = sorted(units.items(), key=lambda item: item[1], reverse=True)
    return [
        {"name": name, "value": value, "fill": BRAND_COLORS.get(name, DEFAULT_BRAND_COLOR)}
        for name, value in ranking
    ]


def payment_methods_chart() -> list[dict]:
    revenue = defaultdict(lambda: Decimal("0.00"))
    for sale in Sale.objects.order_by("created_at", "id").only("unit_price", "quantity", "payment_method"):
        revenue[sale.payment_method] += sale.total
    labels = dict(Sale.PaymentMethod.choices)
    return [
        {
            "name": labels.get(method, method),
            "value": _round(value),
            "fill": PAYMENT_COLORS[index % len(PAYMENT_COLORS)],
        }
        for index, (method, value) in enumerate(revenue.items())
    ]


def clients_chart(limit: int = 5) -> list[dict]:
    revenue = defaultdict(lambda: Decimal("0.00"))
    for sale in Sale.objects.order_by("created_at", "id").only("unit_price", "quantity", "customer"):
        revenue[sale.customer] += sale.total
    ranking = sorted(revenue.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [
        {"name": name, "value": _round(value), "fill": CLIENT_COLORS[index % len(CLIENT_COLORS)]}
        for index, (name, value) in enumerate(ranking)
    ]


CHARTS = {
    "sales": sales_chart,
    "top-products": top_products_chart,
    "top-brands": top_brands_chart,
    "payment-methods": payment_methods_chart,
    "clients": clients_chart,
}


def chart(chart_type: str) -> list[dict]:
    try:
        builder = CHARTS[chart_type]
    except KeyError:
        raise UnknownChartError("Invalid chart type")
    return builder()
