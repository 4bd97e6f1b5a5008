from datetime import date
from decimal import Decimal

from django.test import TestCase

from powergest import reports, services
from powergest.models import Stock


class DashboardStatsTests(TestCase):
    def setUp(self):
        self.today = date(2025, 3, 20)

    def _purchase(self, product, quantity, cost, day, supplier="Dist", brand="ENA"):
        return services.register_purchase(product, supplier, brand, cost, quantity, day)

    def _sale(self, product, quantity, price, day, supplier="Dist", customer="Juan", method="efectivo"):
        return services.register_sale(product, supplier, price, quantity, customer, method, True, "Caro", day)

    def test_totals_and_weekly_figures(self):
        self._purchase("Whey", 10, "100", date(2025, 3, 10))
        self._sale("Whey", 2, "200", date(2025, 3, 8))
        self._sale("Whey", 1, "300", date(2025, 3, 15))
        self._sale("Whey", 1, "250", self.today)

        stats = reports.dashboard_stats(today=self.today)

        self.assertEqual(stats["totalIngresos"], Decimal("950.00"))
        self.assertEqual(stats["totalCompras"], Decimal("1000.00"))
        self.assertEqual(stats["gananciaNet"], Decimal("-50.00"))
        self.assertEqual(stats["stockDisponible"], 6)
        self.assertEqual(stats["ventasHoy"], Decimal("250.00"))
        self.assertEqual(stats["ventasSemana"], Decimal("550.00"))
        # 950 in total against 400 the week before.
        self.assertEqual(stats["ingresosPercentChange"], 138)
        # The purchase falls in the previous week, so its profit base is negative.
        self.assertEqual(stats["gananciaPercentChange"], 0)

    def test_percent_changes_use_running_totals(self):
        self._purchase("Whey", 20, "10", date(2025, 1, 1))
        self._sale("Whey", 10, "100", date(2025, 1, 2))
        self._sale("Whey", 1, "100", date(2025, 3, 10))

        stats = reports.dashboard_stats(today=self.today)

        self.assertEqual(stats["totalIngresos"], Decimal("1100.00"))
        self.assertEqual(stats["gananciaNet"], Decimal("900.00"))
        # 1100 against 100 of sales the week before.
        self.assertEqual(stats["ingresosPercentChange"], 1000)
        # 900 against 100 of profit the week before.
        self.assertEqual(stats["gananciaPercentChange"], 800)

    def test_stock_excludes_cash_and_negative_rows(self):
        Stock.objects.create(product="Dinero de caja", supplier="Caja", quantity_total=5000)
        Stock.objects.create(product="Barra", supplier="Dist", quantity_total=-3)
        Stock.objects.create(product="Whey", supplier="Dist", quantity_total=4)
        stats = reports.dashboard_stats(today=self.today)
        self.assertEqual(stats["stockDisponible"], 4)

    def test_empty_database(self):
        stats = reports.dashboard_stats(today=self.today)
        self.assertEqual(stats["totalIngresos"], Decimal("0.00"))
        self.assertEqual(stats["ingresosPercentChange"], 0)
        self.assertEqual(stats["gananciaPercentChange"], 0)


class ChartTests(TestCase):
    def _purchase(self, product, quantity, day, supplier="Dist", brand="ENA", cost="100"):
        return services.register_purchase(product, supplier, brand, cost, quantity, day)

    def _sale(self, product, quantity, price, day, supplier="Dist", customer="Juan", method="efectivo"):
        return services.register_sale(product, supplier, price, quantity, customer, method, False, "Caro", day)

    def test_sales_chart_keeps_last_six_months(self):
        for month in range(1, 9):
            self._purchase(f"P{month}", 1, date(2024, month, 10), cost="10.50")
        self._sale("P8", 1, "99.50", date(2024, 8, 11))

        data = reports.sales_chart()

        self.assertEqual([row["name"] for row in data], ["Mar", "Abr", "May", "Jun", "Jul", "Ago"])
        self.assertEqual(data[0], {"name": "Mar", "ventas": 0, "compras": 11})
        self.assertEqual(data[-1], {"name": "Ago", "ventas": 100, "compras": 11})

    def test_top_products_ranks_by_units(self):
        day = date(2025, 1, 5)
        for name in ["A", "B", "C", "D", "E", "F"]:
            self._purchase(name, 20, day)
        for name, units in [("A", 1), ("B", 6), ("C", 3), ("D", 4), ("E", 5), ("F", 2)]:
            self._sale(name, units, "10", day)

        data = reports.top_products_chart()

        self.assertEqual([row["name"] for row in data], ["B", "E", "D", "C", "F"])
        self.assertEqual(data[0]["value"], 6)

    def test_top_brands_uses_newest_purchase_brand(self):
        day = date(2025, 1, 5)
        self._purchase("Whey", 10, day, brand="Star")
        self._purchase("Whey", 10, day, brand="Gentech")
        self._purchase("Barra", 10, day, brand="ENA")
        self._sale("Whey", 3, "10", day)
        self._sale("Barra", 1, "10", day)

        data = reports.top_brands_chart()

        self.assertEqual(
            data,
            [
                {"name": "Gentech", "value": 3, "fill": "hsl(217, 71%, 35%)"},
                {"name": "ENA", "value": 1, "fill": "hsl(217, 91%, 60%)"},
            ],
        )

    def test_payment_methods_are_labelled(self):
        day = date(2025, 1, 5)
        self._purchase("Whey", 10, day)
        self._sale("Whey", 1, "100.40", day, method="efectivo")
        self._sale("Whey", 2, "50", day, method="mercadopago")

        data = reports.payment_methods_chart()

        self.assertEqual(
            data,
            [
                {"name": "Efectivo", "value": 100, "fill": "hsl(0, 0%, 90%)"},
                {"name": "MercadoPago", "value": 100, "fill": "hsl(0, 0%, 70%)"},
            ],
        )

    def test_clients_chart_top_revenue(self):
        day = date(2025, 1, 5)
        self._purchase("Whey", 50, day)
        self._sale("Whey", 1, "10", day, customer="Ana")
        self._sale("Whey", 3, "10", day, customer="Luis")
        self._sale("Whey", 1, "10", day, customer="Ana")

        data = reports.clients_chart()

        self.assertEqual([row["name"] for row in data], ["Luis", "Ana"])
        self.assertEqual(data[0]["value"], 30)
        self.assertEqual(data[1]["fill"], "hsl(0, 0%, 65%)")

    def test_unknown_chart(self):
        with self.assertRaises(reports.UnknownChartError):
            reports.chart("pie")
