from django.core.management.base import BaseCommand
from django.utils import timezone

from powergest import services


class Command(BaseCommand):
    help = "Recalcula el stock de cada producto-proveedor a partir de compras y ventas."

    def handle(self, *args, **options):
        rows = services.rebuild_stock()
        self.stdout.write(
            self.style.SUCCESS(f"[{timezone.now():%Y-%m-%d %H:%M:%S}] Stock recalculado. Filas: {rows}.")
        )
