import logging
from functools import wraps

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.http import JsonResponse

from .models import ConfigEntry

logger = logging.getLogger(__name__)


class PasswordNotConfigured(Exception):
    """Raised when no admin password hash has been stored yet."""


def _stored_hash() -> str:
    entry = ConfigEntry.objects.filter(key=ConfigEntry.ADMIN_PASSWORD).first()
    if entry is None or not entry.value:
        raise PasswordNotConfigured("Configuration not found. Run manage.py init_password first.")
    # Hashes written by bcryptjs ($2a$/$2b$) are stored without Django's algorithm prefix.
    if entry.value.startswith("$2"):
        return f"bcrypt${entry.value}"
    return entry.value


def set_admin_password(raw_password: str) -> ConfigEntry:
    if not raw_password:
        raise ValueError("Password cannot be empty")
    entry, _ = ConfigEntry.objects.update_or_create(
        key=ConfigEntry.ADMIN_PASSWORD, defaults={"value": make_password(raw_password)}
    )
    logger.info("Admin password updated")
    return entry


def check_admin_password(raw_password: str) -> bool:
    return check_password(raw_password, _stored_hash())


def is_authenticated(request) -> bool:
    return bool(request.session.get(settings.POWERGEST_SESSION_KEY))


def password_required(view):
    @wraps(view)
    def wrapped(request, *args, **kwargs):
        if not is_authenticated(request):
            return JsonResponse({"error": "Unauthorized"}, status=401)
        return view(request, *args, **kwargs)

    return wrapped
