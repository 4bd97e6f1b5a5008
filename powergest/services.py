import logging
from datetime import date as date_type
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction
from django.db.models import OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from .models import Brand, Purchase, Sale, Stock

logger = logging.getLogger(__name__)

DEFAULT_BRAND = Brand.ENA
# DecimalField(max_digits=12, decimal_places=2) and PositiveIntegerField limits.
MAX_AMOUNT = Decimal("1e10")
MAX_QUANTITY = 2147483647


class StockError(Exception):
    """Base error for stock operations."""


class InvalidMovementError(StockError):
    """Raised when a purchase or sale request is invalid."""


class MissingStockError(StockError):
    """Raised when a sale references a product-supplier pair with no stock."""


class InsufficientStockError(StockError):
    """Raised when a sale asks for more units than are available."""

    def __init__(self, available: int):
        self.available = available
        super().__init__(f"Stock insuficiente. Disponible: {available}")


class PurchaseLockedError(StockError):
    """Raised when editing a purchase whose product-supplier pair already has sales."""


class UnbackedSalesError(StockError):
    """Raised when deleting a purchase would leave sales without purchased stock."""


def _to_decimal(value: Decimal | float | int | str) -> Decimal:
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
        if not dec.is_finite():
            raise InvalidMovementError(f"Importe inválido: {value!r}")
        dec = dec.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidMovementError(f"Importe inválido: {value!r}")
    if abs(dec) >= MAX_AMOUNT:
        raise InvalidMovementError(f"Importe fuera de rango: {value!r}")
    return dec


def _positive_quantity(value) -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise InvalidMovementError(f"Cantidad inválida: {value!r}")
    if qty <= 0:
        raise InvalidMovementError("La cantidad debe ser positiva")
    if qty > MAX_QUANTITY:
        raise InvalidMovementError(f"Cantidad fuera de rango: {qty}")
    return qty


def _required_text(value, label: str) -> str:
    text = (value or "").strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidMovementError(f"{label} es obligatorio")
    return text


def _valid_brand(value) -> str:
    if value not in Brand.values:
        raise InvalidMovementError(f"Marca inválida: {value}")
    return value


def _valid_payment_method(value) -> str:
    if value not in Sale.PaymentMethod.values:
        raise InvalidMovementError(f"Método de pago inválido: {value}")
    return value


def _valid_date(value) -> date_type:
    if not isinstance(value, date_type):
        raise InvalidMovementError("Fecha inválida")
    return value


def _get_stock_for_update(product: str, supplier: str) -> Stock | None:
    return Stock.objects.select_for_update().filter(product=product, supplier=supplier).first()


def _has_sales(product: str, supplier: str) -> bool:
    return Sale.objects.filter(product=product, supplier=supplier).exists()


def _shift_purchased(product: str, supplier: str, delta: int) -> None:
    stock = _get_stock_for_update(product, supplier)
    if stock is None:
        if delta <= 0:
            logger.warning("No stock row for %s / %s while removing %s purchased units", product, supplier, -delta)
            return
        Stock.objects.create(
            product=product,
            supplier=supplier,
            sale_unit_price=Decimal("0.00"),
            quantity_sold=0,
            quantity_purchased=delta,
            quantity_total=delta,
        )
        return
    stock.quantity_purchased += delta
    stock.quantity_total += delta
    stock.save(update_fields=["quantity_purchased", "quantity_total", "updated_at"])


def _release_purchased(product: str, supplier: str, quantity: int) -> None:
    # Called after the purchase row is gone: the stock row only lives while purchases back it.
    if not Purchase.objects.filter(product=product, supplier=supplier).exists():
        Stock.objects.filter(product=product, supplier=supplier).delete()
        return
    _shift_purchased(product, supplier, -quantity)


@transaction.atomic
def register_purchase(
    product: str,
    supplier: str,
    brand: str,
    unit_cost: Decimal | float | int | str,
    quantity: int,
    date: date_type,
) -> Purchase:
    product = _required_text(product, "El producto")
    supplier = _required_text(supplier, "El proveedor")
    cost = _to_decimal(unit_cost)
    if cost <= 0:
        raise InvalidMovementError("El precio unitario de compra debe ser positivo")
    qty = _positive_quantity(quantity)

    purchase = Purchase.objects.create(
        product=product,
        supplier=supplier,
        brand=_valid_brand(brand),
        unit_cost=cost,
        quantity=qty,
        date=_valid_date(date),
    )
    _shift_purchased(product, supplier, qty)
    logger.info("Purchase #%s registered: %s / %s x %s", purchase.pk, product, supplier, qty)
    return purchase


@transaction.atomic
def update_purchase(
    purchase: Purchase,
    product: str | None = None,
    supplier: str | None = None,
    brand: str | None = None,
    unit_cost: Decimal | float | int | str | None = None,
    quantity: int | None = None,
    date: date_type | None = None,
) -> Purchase:
    old_product, old_supplier, old_qty = purchase.product, purchase.supplier, purchase.quantity
    new_product = _required_text(product, "El producto") if product else old_product
    new_supplier = _required_text(supplier, "El proveedor") if supplier else old_supplier

    for key in {(old_product, old_supplier), (new_product, new_supplier)}:
        if _has_sales(*key):
            raise PurchaseLockedError(
                "No se puede editar una compra de un producto-proveedor con ventas registradas"
            )

    if unit_cost is not None:
        cost = _to_decimal(unit_cost)
        if cost <= 0:
            raise InvalidMovementError("El precio unitario de compra debe ser positivo")
        purchase.unit_cost = cost
    if brand:
        purchase.brand = _valid_brand(brand)
    if date is not None:
        purchase.date = _valid_date(date)
    new_qty = old_qty if quantity is None else _positive_quantity(quantity)

    purchase.product = new_product
    purchase.supplier = new_supplier
    purchase.quantity = new_qty
    purchase.save()

    if (new_product, new_supplier) != (old_product, old_supplier):
        _release_purchased(old_product, old_supplier, old_qty)
        _shift_purchased(new_product, new_supplier, new_qty)
    elif new_qty != old_qty:
        _shift_purchased(new_product, new_supplier, new_qty - old_qty)

    logger.info("Purchase #%s updated", purchase.pk)
    return purchase


@transaction.atomic
def delete_purchase(purchase: Purchase) -> None:
    stock = _get_stock_for_update(purchase.product, purchase.supplier)
    if stock is not None:
        remaining = stock.quantity_purchased - purchase.quantity
        if stock.quantity_sold > remaining:
            raise UnbackedSalesError(
                "No se puede eliminar esta compra porque quedarían ventas sin stock de origen"
            )
    product, supplier, qty, pk = purchase.product, purchase.supplier, purchase.quantity, purchase.pk
    purchase.delete()
    _release_purchased(product, supplier, qty)
    logger.info("Purchase #%s deleted: %s / %s x %s", pk, product, supplier, qty)


@transaction.atomic
def register_sale(
    product: str,
    supplier: str,
    unit_price: Decimal | float | int | str,
    quantity: int,
    customer: str,
    payment_method: str,
    is_paid: bool,
    handled_by: str,
    date: date_type,
) -> Sale:
    product = _required_text(product, "El producto")
    supplier = _required_text(supplier, "El proveedor")
    price = _to_decimal(unit_price)
    if price < 0:
        raise InvalidMovementError("El precio unitario de venta no puede ser negativo")
    qty = _positive_quantity(quantity)

    stock = _get_stock_for_update(product, supplier)
    if stock is None:
        raise MissingStockError("No existe stock para este producto-proveedor")
    if stock.quantity_total < qty:
        raise InsufficientStockError(stock.quantity_total)

    sale = Sale.objects.create(
        product=product,
        supplier=supplier,
        unit_price=price,
        quantity=qty,
        customer=_required_text(customer, "El cliente"),
        payment_method=_valid_payment_method(payment_method),
        is_paid=bool(is_paid),
        handled_by=_required_text(handled_by, "El usuario a cargo"),
        date=_valid_date(date),
    )
    stock.quantity_sold += qty
    stock.quantity_total -= qty
    stock.sale_unit_price = price
    stock.save(update_fields=["quantity_sold", "quantity_total", "sale_unit_price", "updated_at"])
    logger.info("Sale #%s registered: %s / %s x %s", sale.pk, product, supplier, qty)
    return sale


@transaction.atomic
def update_sale(
    sale: Sale,
    unit_price: Decimal | float | int | str | None = None,
    quantity: int | None = None,
    customer: str | None = None,
    payment_method: str | None = None,
    is_paid: bool | None = None,
    handled_by: str | None = None,
    date: date_type | None = None,
) -> Sale:
    old_qty, old_price = sale.quantity, sale.unit_price
    new_qty = old_qty if quantity is None else _positive_quantity(quantity)
    new_price = old_price if unit_price is None else _to_decimal(unit_price)
    if new_price < 0:
        raise InvalidMovementError("El precio unitario de venta no puede ser negativo")

    stock = _get_stock_for_update(sale.product, sale.supplier)
    if new_qty > old_qty:
        if stock is None:
            raise MissingStockError("No existe stock para este producto-proveedor")
        if stock.quantity_total < new_qty - old_qty:
            raise InsufficientStockError(stock.quantity_total)

    sale.unit_price = new_price
    sale.quantity = new_qty
    if customer:
        sale.customer = _required_text(customer, "El cliente")
    if payment_method:
        sale.payment_method = _valid_payment_method(payment_method)
    if is_paid is not None:
        sale.is_paid = bool(is_paid)
    if handled_by:
        sale.handled_by = _required_text(handled_by, "El usuario a cargo")
    if date is not None:
        sale.date = _valid_date(date)
    sale.save()

    if new_qty != old_qty or new_price != old_price:
        if stock is None:
            logger.warning("No stock row for %s / %s while updating sale #%s", sale.product, sale.supplier, sale.pk)
        else:
            diff = new_qty - old_qty
            stock.quantity_sold += diff
            stock.quantity_total -= diff
            stock.sale_unit_price = new_price
            stock.save(update_fields=["quantity_sold", "quantity_total", "sale_unit_price", "updated_at"])

    logger.info("Sale #%s updated", sale.pk)
    return sale


@transaction.atomic
def delete_sale(sale: Sale) -> None:
    stock = _get_stock_for_update(sale.product, sale.supplier)
    product, supplier, qty, pk = sale.product, sale.supplier, sale.quantity, sale.pk
    sale.delete()
    if stock is None:
        logger.warning("No stock row for %s / %s while deleting sale #%s", product, supplier, pk)
        return
    stock.quantity_sold -= qty
    stock.quantity_total += qty
    stock.save(update_fields=["quantity_sold", "quantity_total", "updated_at"])
    logger.info("Sale #%s deleted: %s / %s x %s", pk, product, supplier, qty)


@transaction.atomic
def rebuild_stock() -> int:
    """Recompute every stock row from the purchase and sale records.

    Keeps the price of the newest sale of each pair (or the stored one when
    the pair has no sales) and drops rows that no record backs any more.
    Returns the number of stock rows written.
    """
    purchased = {
        (row["product"], row["supplier"]): row["total"]
        for row in Purchase.objects.values("product", "supplier").annotate(total=Sum("quantity"))
    }
    sold = {
        (row["product"], row["supplier"]): row["total"]
        for row in Sale.objects.values("product", "supplier").annotate(total=Sum("quantity"))
    }
    last_price = {}
    for sale in Sale.objects.order_by("created_at", "id").only("product", "supplier", "unit_price"):
        last_price[(sale.product, sale.supplier)] = sale.unit_price

    existing = {(stock.product, stock.supplier): stock for stock in Stock.objects.select_for_update()}
    keys = set(purchased) | set(sold)
    for key in set(existing) - keys:
        existing[key].delete()

    for product, supplier in sorted(keys):
        key = (product, supplier)
        qty_purchased = purchased.get(key) or 0
        qty_sold = sold.get(key) or 0
        current = existing.get(key)
        price = last_price.get(key)
        if price is None:
            price = current.sale_unit_price if current else Decimal("0.00")
        Stock.objects.update_or_create(
            product=product,
            supplier=supplier,
            defaults={
                "quantity_purchased": qty_purchased,
                "quantity_sold": qty_sold,
                "quantity_total": qty_purchased - qty_sold,
                "sale_unit_price": price,
            },
        )
    logger.info("Stock rebuilt: %s rows", len(keys))
    return len(keys)


def stock_with_brand():
    """Stock rows annotated with the brand of the newest purchase of each pair."""
    newest_brand = (
        Purchase.objects.filter(product=OuterRef("product"), supplier=OuterRef("supplier"))
        .order_by("-created_at", "-id")
        .values("brand")[:1]
    )
    return Stock.objects.annotate(brand=Coalesce(Subquery(newest_brand), Value(DEFAULT_BRAND.value)))


def catalog() -> list[dict]:
    """Sellable product-supplier pairs with brand, available units and last sale price."""
    return [
        {
            "product": stock.product,
            "supplier": stock.supplier,
            "brand": stock.brand,
            "available": stock.quantity_total,
            "sale_unit_price": stock.sale_unit_price,
        }
        for stock in stock_with_brand()
    ]
