from django.apps import AppConfig


class PowergestConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "powergest"
    verbose_name = "PowerGest"
