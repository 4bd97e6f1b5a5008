import json
from io import StringIO

import bcrypt
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.urls import reverse

from powergest import auth
from powergest.models import ConfigEntry


class SharedPasswordTests(TestCase):
    def _login(self, password):
        return self.client.post(
            reverse("powergest_auth"), data=json.dumps({"password": password}), content_type="application/json"
        )

    def test_hash_is_bcrypt(self):
        auth.set_admin_password("Power(FS)05")
        stored = ConfigEntry.objects.get(key=ConfigEntry.ADMIN_PASSWORD).value
        self.assertTrue(stored.startswith("bcrypt_sha256$"))
        self.assertTrue(auth.check_admin_password("Power(FS)05"))
        self.assertFalse(auth.check_admin_password("otra"))

    def test_accepts_raw_bcrypt_hash(self):
        raw_hash = bcrypt.hashpw(b"secreto", bcrypt.gensalt(rounds=4)).decode()
        ConfigEntry.objects.create(key=ConfigEntry.ADMIN_PASSWORD, value=raw_hash)
        self.assertTrue(auth.check_admin_password("secreto"))
        self.assertFalse(auth.check_admin_password("incorrecto"))

    def test_unconfigured_password(self):
        with self.assertRaises(auth.PasswordNotConfigured):
            auth.check_admin_password("x")
        response = self._login("x")
        self.assertEqual(response.status_code, 500)
        self.assertIn("Configuration not found", response.json()["error"])

    def test_login_opens_session(self):
        auth.set_admin_password("clave")
        self.assertEqual(self.client.get(reverse("powergest_sales")).status_code, 401)

        response = self._login("incorrecta")
        self.assertEqual(response.json(), {"valid": False})
        self.assertEqual(self.client.get(reverse("powergest_sales")).status_code, 401)

        response = self._login("clave")
        self.assertEqual(response.json(), {"valid": True})
        self.assertEqual(self.client.get(reverse("powergest_sales")).status_code, 200)

        self.client.post(reverse("powergest_logout"))
        self.assertEqual(self.client.get(reverse("powergest_sales")).status_code, 401)

    def test_login_requires_password(self):
        response = self._login("")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Password is required"})
        self.assertEqual(self.client.get(reverse("powergest_auth")).status_code, 405)


class InitPasswordCommandTests(TestCase):
    def test_sets_password_from_argument(self):
        out = StringIO()
        call_command("init_password", "desde-cli", stdout=out)
        self.assertIn("Contraseña inicializada", out.getvalue())
        self.assertTrue(auth.check_admin_password("desde-cli"))

    @override_settings(ADMIN_PASSWORD="desde-env")
    def test_falls_back_to_environment(self):
        call_command("init_password", stdout=StringIO())
        self.assertTrue(auth.check_admin_password("desde-env"))

    @override_settings(ADMIN_PASSWORD="")
    def test_fails_without_password(self):
        with self.assertRaises(CommandError):
            call_command("init_password", stdout=StringIO())
