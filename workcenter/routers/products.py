from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.errors import ProductNotFound, ValidationError
from workcenter.models.catalog import Product
from workcenter.schemas import ProductIn, ProductStatusIn
from workcenter.services.pricing import check_amount, to_money
from workcenter.utils.enums import ProductStatus
from workcenter.utils.serializers import product_to_dict

router = APIRouter(prefix="/api/products", tags=["products"])

STATUSES = {s.value for s in ProductStatus}


def _clean(payload: ProductIn) -> dict:
    name = (payload.name or "").strip()
    if len(name) < 2:
        raise ValidationError("Name must be at least 2 characters")
    price = check_amount(to_money(payload.price), "Price is too large")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    status = (payload.status or ProductStatus.ACTIVE.value).upper()
    if status not in STATUSES:
        raise ValidationError("Invalid status")
    return {"name": name, "price": price, "status": status}


def _get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise ProductNotFound("Product not found")
    return product


# 📦 список товаров
@router.get("")
def list_products(active: bool = Query(False), db: Session = Depends(get_db)):
    q = db.query(Product)
    if active:
        q = q.filter(Product.status == ProductStatus.ACTIVE.value)
    return [product_to_dict(p) for p in q.order_by(Product.name.asc()).all()]


# 💾 создание
@router.post("")
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    product = Product(**_clean(payload))
    db.add(product)
    db.commit()
    db.refresh(product)
    return product_to_dict(product)


# 🔄 обновление: новая цена действует только на новые заказы
@router.put("/{product_id}")
def update_product(product_id: int, payload: ProductIn, db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    for key, value in _clean(payload).items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return product_to_dict(product)


@router.patch("/{product_id}/status")
def set_product_status(product_id: int, payload: ProductStatusIn, db: Session = Depends(get_db)):
    product = _get_product(db, product_id)

    requested = (payload.status or "").upper()
    if requested in STATUSES:
        product.status = requested
    else:
        # без статуса: переключаем
        product.status = (
            ProductStatus.DISABLED.value
            if product.status == ProductStatus.ACTIVE.value
            else ProductStatus.ACTIVE.value
        )
    db.commit()
    db.refresh(product)
    return product_to_dict(product)
