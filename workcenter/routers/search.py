import re

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.models.customer import Customer
from workcenter.services.orders import search_orders

router = APIRouter(prefix="/api/search", tags=["search"])

RESULT_LIMIT = 12
PER_KIND = 10


def looks_like_order(q: str) -> bool:
    """ORD000021 / ord21 / 000021: сначала показываем заказы."""
    qu = q.upper()
    return qu.startswith("ORD") or bool(re.fullmatch(r"[0-9]{3,}", qu))


@router.get("")
def global_search(q: str = Query(""), db: Session = Depends(get_db)):
    q = (q or "").strip()
    if not q:
        return []

    orders = search_orders(db, q, limit=PER_KIND)

    like = f"%{q}%"
    customers = (
        db.query(Customer)
        .filter(Customer.is_archived.is_(False))
        .filter(or_(
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
            Customer.email.ilike(like),
        ))
        .order_by(Customer.date_added.desc(), Customer.id.desc())
        .limit(PER_KIND)
        .all()
    )

    order_results = [
        {
            "type": "order",
            "id": o.id,
            "label": f"{o.order_number} · {o.customer_name_snapshot}",
            "order_number": o.order_number,
            "customer_name": o.customer_name_snapshot,
            "status": o.status,
        }
        for o in orders
    ]
    customer_results = [
        {
            "type": "customer",
            "id": c.id,
            "label": c.name,
            "name": c.name,
            "phone": c.phone,
            "email": c.email,
        }
        for c in customers
    ]

    if looks_like_order(q):
        results = order_results + customer_results
    else:
        results = customer_results + order_results
    return results[:RESULT_LIMIT]
