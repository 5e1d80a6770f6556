from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from workcenter.errors import InvalidQuantity, ProductNotFound, ValidationError
from workcenter.models.catalog import Product
from workcenter.models.order import LineItem

CENTS = Decimal("0.01")

# границы колонок: qty Integer, деньги Numeric(12, 2)
MAX_QTY = 1_000_000
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass
class LineRequest:
    product_id: int
    qty: int
    override_unit_price: Optional[Decimal] = None


def to_money(value) -> Decimal:
    """Денежное значение -> Decimal с двумя знаками (поддерживает запятую)."""
    if isinstance(value, bool):
        raise ValidationError("Invalid price")
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.replace(",", ".").strip()
    try:
        return Decimal(value).quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Invalid price")


def _check_qty(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise InvalidQuantity("Quantity must be a positive whole number")
    if qty > MAX_QTY:
        raise InvalidQuantity(f"Quantity cannot exceed {MAX_QTY}")
    return qty


def check_amount(value: Decimal, message: str = "Amount is too large") -> Decimal:
    """Сумма должна помещаться в Numeric(12, 2)."""
    if abs(value) > MAX_AMOUNT:
        raise ValidationError(message)
    return value


def price_line(product: Product, req: LineRequest) -> LineItem:
    qty = _check_qty(req.qty)
    catalog = to_money(product.price)

    overridden = req.override_unit_price is not None
    if overridden:
        unit_final = check_amount(to_money(req.override_unit_price), "Override price is too large")
        if unit_final < 0:
            raise ValidationError("Override price cannot be negative")
    else:
        unit_final = catalog

    return LineItem(
        product_id=product.id,
        product_name_snapshot=product.name,
        catalog_unit_price_snapshot=catalog,
        unit_price_final=unit_final,
        qty=qty,
        line_total=check_amount((unit_final * qty).quantize(CENTS), "Line total is too large"),
        is_price_overridden=overridden,
    )


def price_lines(db: Session, requests: Iterable[LineRequest]) -> List[LineItem]:
    """
    Снимки строк заказа по текущему каталогу.

    Любая ошибка (нет товара, плохое количество/цена) отклоняет весь набор.
    Каталог только читается.
    """
    requests = list(requests)
    for req in requests:
        _check_qty(req.qty)

    ids = {req.product_id for req in requests}
    products = {}
    if ids:
        products = {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}

    items = []
    for req in requests:
        product = products.get(req.product_id)
        if product is None:
            raise ProductNotFound("Product not found")
        items.append(price_line(product, req))
    return items
