from datetime import date
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from powergest import services
from powergest.models import Stock


class RebuildStockCommandTests(TestCase):
    def test_rebuild_stock_fixes_drift(self):
        services.register_purchase("Whey", "Dist", "ENA", "100", 8, date(2025, 2, 1))
        services.register_sale("Whey", "Dist", "150", 3, "Juan", "tarjeta", True, "Caro", date(2025, 2, 2))
        Stock.objects.filter(product="Whey").update(quantity_total=0)

        out = StringIO()
        call_command("rebuild_stock", stdout=out)

        self.assertIn("Filas: 1", out.getvalue())
        self.assertEqual(Stock.objects.get(product="Whey").quantity_total, 5)
