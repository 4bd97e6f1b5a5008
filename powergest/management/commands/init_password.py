from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from powergest.auth import set_admin_password


class Command(BaseCommand):
    help = "Guarda el hash bcrypt de la contraseña compartida del panel."

    def add_arguments(self, parser):
        parser.add_argument("password", nargs="?", help="Contraseña en texto plano (por defecto ADMIN_PASSWORD).")

    def handle(self, *args, **options):
        password = options.get("password") or settings.ADMIN_PASSWORD
        if not password:
            raise CommandError("Indicá la contraseña o definí ADMIN_PASSWORD en el entorno.")
        set_admin_password(password)
        self.stdout.write(self.style.SUCCESS("Contraseña inicializada correctamente."))
