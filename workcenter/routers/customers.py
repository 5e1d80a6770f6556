from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.errors import CustomerNotFound, ValidationError
from workcenter.middleware.rbac import Principal, get_principal
from workcenter.models.customer import Customer
from workcenter.schemas import CustomerIn, InitialsIn
from workcenter.services.audit import record_audit
from workcenter.utils.initials import normalize_initials
from workcenter.utils.serializers import customer_to_dict

router = APIRouter(prefix="/api/customers", tags=["customers"])


def _clean(payload: CustomerIn) -> dict:
    name = (payload.name or "").strip()
    phone = (payload.phone or "").strip() or None
    email = (payload.email or "").strip().lower() or None
    address = (payload.shipping_address or "").strip()

    if len(name) < 2:
        raise ValidationError("Name must be at least 2 characters")
    if len(address) < 3:
        raise ValidationError("Shipping address is required")
    if not phone and not email:
        raise ValidationError("Phone or Email is required")
    return {"name": name, "phone": phone, "email": email, "shipping_address": address}


# список (поиск по имени / телефону / email)
@router.get("")
def list_customers(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    query = db.query(Customer).filter(Customer.is_archived.is_(False))
    q = (q or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
            Customer.email.ilike(like),
        ))
    rows = query.order_by(Customer.date_added.desc(), Customer.id.desc()).all()
    return [customer_to_dict(c) for c in rows]


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = db.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFound("Customer not found")
    return customer_to_dict(customer)


@router.post("")
def create_customer(payload: CustomerIn, db: Session = Depends(get_db)):
    customer = Customer(**_clean(payload))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer_to_dict(customer)


# правка клиента не трогает снимки в уже созданных заказах
@router.put("/{customer_id}")
def update_customer(customer_id: int, payload: CustomerIn, db: Session = Depends(get_db)):
    customer = db.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFound("Customer not found")

    for key, value in _clean(payload).items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer_to_dict(customer)


@router.post("/{customer_id}/archive")
def archive_customer(
    customer_id: int,
    payload: InitialsIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(payload.initials)
    customer = db.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFound("Customer not found")

    customer.is_archived = True
    db.commit()
    db.refresh(customer)

    record_audit(
        "CUSTOMER_ARCHIVED",
        details=f"Archived customer {customer.name}",
        initials=initials,
        details_json={"customer_id": customer.id},
        actor_user_id=principal.id,
    )
    return customer_to_dict(customer)
