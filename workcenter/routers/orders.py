from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.errors import ValidationError
from workcenter.middleware.rbac import Principal, get_principal
from workcenter.schemas import InitialsIn, OrderCreate
from workcenter.services import documents, orders as order_service
from workcenter.services.audit import record_audit
from workcenter.services.pricing import LineRequest
from workcenter.services.settings import brand_name
from workcenter.utils.initials import normalize_initials
from workcenter.utils.serializers import order_summary, order_to_dict

router = APIRouter(prefix="/api/orders", tags=["orders"])

XLSX_MEDIA = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------- СПИСОК ----------
@router.get("")
def list_orders(status: str = Query("WIP"), db: Session = Depends(get_db)):
    return [order_summary(o) for o in order_service.list_orders(db, status)]


@router.get("/search")
def search_orders(q: str = Query(""), db: Session = Depends(get_db)):
    q = (q or "").strip()
    if len(q) < 2:
        return []
    return [order_summary(o) for o in order_service.search_orders(db, q)]


# ---------- ВЫГРУЗКА ЗАВЕРШЁННЫХ (ADMIN) ----------
# выше /{order_id}, иначе "export" попадёт в id
@router.get("/export/completed")
def export_completed(
    initials: str = Query(""),
    fmt: str = Query("csv", alias="format"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(initials)
    fmt = (fmt or "csv").lower()
    if fmt not in ("csv", "xlsx"):
        raise ValidationError("Format must be csv or xlsx")

    rows = order_service.finished_orders(db)
    if fmt == "xlsx":
        body = documents.completed_orders_xlsx(rows)
        media = XLSX_MEDIA
    else:
        body = documents.completed_orders_csv(rows).encode("utf-8")
        media = "text/csv; charset=utf-8"

    record_audit(
        "ORDERS_EXPORTED_COMPLETED",
        details=f"Exported {len(rows)} completed orders",
        initials=initials,
        details_json={"count": len(rows), "format": fmt},
        actor_user_id=principal.id,
    )

    filename = f"completed-orders.{fmt}"
    headers = {"Content-Disposition": documents.content_disposition(filename, filename)}
    return Response(content=body, media_type=media, headers=headers)


# ---------- ДЕТАЛИ ----------
@router.get("/{order_id}")
def order_detail(order_id: int, db: Session = Depends(get_db)):
    return order_to_dict(order_service.get_order(db, order_id))


@router.post("")
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    lines = [
        LineRequest(product_id=li.product_id, qty=li.qty, override_unit_price=li.override_unit_price)
        for li in payload.line_items
    ]
    order = order_service.create_order(db, payload.customer_id, lines, actor_user_id=principal.id)
    return order_to_dict(order)


# ---------- СМЕНА СТАТУСА ----------
@router.post("/{order_id}/complete")
def complete_order(
    order_id: int,
    payload: InitialsIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    order = order_service.complete_order(db, order_id, payload.initials, actor_user_id=principal.id)
    return order_to_dict(order)


@router.patch("/{order_id}/delete")
def delete_order(
    order_id: int,
    payload: InitialsIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    order = order_service.soft_delete_order(db, order_id, payload.initials, actor_user_id=principal.id)
    return order_summary(order)


# ---------- PDF ----------
@router.get("/{order_id}/pdf")
def order_pdf(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id)
    pdf = documents.render_order_pdf(order, brand_name(db))
    filename = f"{order.order_number}.pdf"
    headers = {"Content-Disposition": documents.content_disposition(filename, filename)}
    return Response(content=pdf, media_type="application/pdf", headers=headers)
