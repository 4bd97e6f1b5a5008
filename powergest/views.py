import json
import logging
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import reports, services
from .auth import PasswordNotConfigured, check_admin_password, password_required
from .models import Purchase, Sale

logger = logging.getLogger(__name__)

PURCHASE_FIELDS = ("producto", "proveedor", "marca", "precioUnitarioCompra", "cantidad", "fecha")


class BadRequest(ValueError):
    pass


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def _json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (TypeError, ValueError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(data, dict):
        raise BadRequest("Invalid JSON body")
    return data


def _parse_date(value):
    if value in (None, ""):
        return None
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        raise BadRequest(f"Fecha inválida: {value}")


def _parse_bool(value):
    if value is None:
        return None
    return value is True or value == "true"


def _get_or_none(model, raw_id):
    try:
        pk = int(raw_id)
    except (TypeError, ValueError):
        return None
    return model.objects.filter(pk=pk).first()


def _money(value: Decimal) -> float:
    return float(value or 0)


def _purchase_payload(purchase: Purchase) -> dict:
    return {
        "id": str(purchase.pk),
        "producto": purchase.product,
        "proveedor": purchase.supplier,
        "marca": purchase.brand,
        "precioUnitarioCompra": _money(purchase.unit_cost),
        "cantidad": purchase.quantity,
        "fecha": purchase.date.isoformat(),
    }


def _sale_payload(sale: Sale) -> dict:
    return {
        "id": str(sale.pk),
        "producto": sale.product,
        "proveedor": sale.supplier,
        "precioUnitarioVenta": _money(sale.unit_price),
        "cantidad": sale.quantity,
        "cliente": sale.customer,
        "metodoPago": sale.payment_method,
        "isPagado": sale.is_paid,
        "usuarioACargo": sale.handled_by,
        "fecha": sale.date.isoformat(),
    }


def _handle_errors(label: str, func):
    try:
        return func()
    except BadRequest as exc:
        return _error(str(exc), 400)
    except services.StockError as exc:
        logger.info("%s rejected: %s", label, exc)
        return _error(str(exc), 400)
    except Exception:
        logger.exception("%s error", label)
        return _error("Internal server error", 500)


@csrf_exempt
@require_http_methods(["POST"])
def auth_view(request):
    def run():
        password = _json_body(request).get("password")
        if not password:
            return _error("Password is required", 400)
        try:
            valid = check_admin_password(password)
        except PasswordNotConfigured as exc:
            logger.error("%s", exc)
            return _error(str(exc), 500)
        if valid:
            request.session.cycle_key()
            request.session[settings.POWERGEST_SESSION_KEY] = True
        else:
            logger.info("Rejected admin login attempt")
        return JsonResponse({"valid": valid})

    return _handle_errors("Auth", run)


@csrf_exempt
@require_http_methods(["POST"])
def logout_view(request):
    request.session.flush()
    return JsonResponse({"message": "Logged out"})


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
@password_required
def purchases_view(request):
    if request.method == "GET":
        return _handle_errors(
            "Get compras",
            lambda: JsonResponse([_purchase_payload(p) for p in Purchase.objects.all()], safe=False),
        )
    if request.method == "POST":
        return _handle_errors("Create compra", lambda: _create_purchase(request))
    if request.method == "PUT":
        return _handle_errors("Update compra", lambda: _update_purchase(request))
    return _handle_errors("Delete compra", lambda: _delete_purchase(request))


def _create_purchase(request):
    data = _json_body(request)
    if any(not data.get(field) for field in PURCHASE_FIELDS):
        return _error("All fields are required", 400)
    purchase = services.register_purchase(
        product=data["producto"],
        supplier=data["proveedor"],
        brand=data["marca"],
        unit_cost=data["precioUnitarioCompra"],
        quantity=data["cantidad"],
        date=_parse_date(data["fecha"]),
    )
    return JsonResponse(_purchase_payload(purchase), status=201)


def _update_purchase(request):
    data = _json_body(request)
    if not data.get("id"):
        return _error("ID is required", 400)
    purchase = _get_or_none(Purchase, data["id"])
    if purchase is None:
        return _error("Compra not found", 404)
    purchase = services.update_purchase(
        purchase,
        product=data.get("producto"),
        supplier=data.get("proveedor"),
        brand=data.get("marca"),
        unit_cost=data.get("precioUnitarioCompra"),
        quantity=data.get("cantidad"),
        date=_parse_date(data.get("fecha")),
    )
    return JsonResponse(_purchase_payload(purchase))


def _delete_purchase(request):
    raw_id = request.GET.get("id")
    if not raw_id:
        return _error("ID is required", 400)
    purchase = _get_or_none(Purchase, raw_id)
    if purchase is None:
        return _error("Compra not found", 404)
    services.delete_purchase(purchase)
    return JsonResponse({"message": "Compra deleted"})


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
@password_required
def sales_view(request):
    if request.method == "GET":
        return _handle_errors(
            "Get ventas",
            lambda: JsonResponse([_sale_payload(s) for s in Sale.objects.all()], safe=False),
        )
    if request.method == "POST":
        return _handle_errors("Create venta", lambda: _create_sale(request))
    if request.method == "PUT":
        return _handle_errors("Update venta", lambda: _update_sale(request))
    return _handle_errors("Delete venta", lambda: _delete_sale(request))


def _create_sale(request):
    data = _json_body(request)
    required = ("producto", "proveedor", "cantidad", "cliente", "metodoPago", "usuarioACargo", "fecha")
    if (
        any(not data.get(field) for field in required)
        or data.get("precioUnitarioVenta") is None
        or data.get("isPagado") is None
    ):
        return _error("All fields are required", 400)
    sale = services.register_sale(
        product=data["producto"],
        supplier=data["proveedor"],
        unit_price=data["precioUnitarioVenta"],
        quantity=data["cantidad"],
        customer=data["cliente"],
        payment_method=data["metodoPago"],
        is_paid=_parse_bool(data["isPagado"]),
        handled_by=data["usuarioACargo"],
        date=_parse_date(data["fecha"]),
    )
    return JsonResponse(_sale_payload(sale), status=201)


def _update_sale(request):
    data = _json_body(request)
    if not data.get("id"):
        return _error("ID is required", 400)
    sale = _get_or_none(Sale, data["id"])
    if sale is None:
        return _error("Venta not found", 404)
    sale = services.update_sale(
        sale,
        unit_price=data.get("precioUnitarioVenta"),
        quantity=data.get("cantidad"),
        customer=data.get("cliente"),
        payment_method=data.get("metodoPago"),
        is_paid=_parse_bool(data.get("isPagado")),
        handled_by=data.get("usuarioACargo"),
        date=_parse_date(data.get("fecha")),
    )
    return JsonResponse(_sale_payload(sale))


def _delete_sale(request):
    raw_id = request.GET.get("id")
    if not raw_id:
        return _error("ID is required", 400)
    sale = _get_or_none(Sale, raw_id)
    if sale is None:
        return _error("Venta not found", 404)
    services.delete_sale(sale)
    return JsonResponse({"message": "Venta deleted"})


@csrf_exempt
@require_http_methods(["GET"])
@password_required
def stock_view(request):
    def run():
        rows = [
            {
                "id": str(stock.pk),
                "producto": stock.product,
                "proveedor": stock.supplier,
                "marca": stock.brand,
                "precioUnitarioVenta": _money(stock.sale_unit_price),
                "cantidadVendida": stock.quantity_sold,
                "cantidadComprada": stock.quantity_purchased,
                "cantidadTotal": stock.quantity_total,
            }
            for stock in services.stock_with_brand()
        ]
        return JsonResponse(rows, safe=False)

    return _handle_errors("Get stock", run)


@csrf_exempt
@require_http_methods(["GET"])
@password_required
def products_view(request):
    def run():
        rows = [
            {
                "producto": item["product"],
                "proveedor": item["supplier"],
                "marca": item["brand"],
                "stockDisponible": item["available"],
                "precioUnitarioVenta": _money(item["sale_unit_price"]),
            }
            for item in services.catalog()
        ]
        return JsonResponse(rows, safe=False)

    return _handle_errors("Get productos", run)


@csrf_exempt
@require_http_methods(["GET"])
@password_required
def dashboard_stats_view(request):
    def run():
        stats = reports.dashboard_stats()
        payload = {
            key: _money(value) if isinstance(value, Decimal) else value for key, value in stats.items()
        }
        return JsonResponse(payload)

    return _handle_errors("Get dashboard stats", run)


@csrf_exempt
@require_http_methods(["GET"])
@password_required
def dashboard_charts_view(request):
    def run():
        try:
            data = reports.chart(request.GET.get("type", ""))
        except reports.UnknownChartError as exc:
            return _error(str(exc), 400)
        return JsonResponse(data, safe=False)

    return _handle_errors("Get dashboard charts", run)
