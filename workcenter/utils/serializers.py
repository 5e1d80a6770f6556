from typing import Any, Dict, Optional

from workcenter.models.attachment import Attachment, AttachmentVersion
from workcenter.models.catalog import Product
from workcenter.models.customer import Customer
from workcenter.models.order import LineItem, Order
from workcenter.models.order_history import OrderHistory
from workcenter.models.user import User
from workcenter.services.attachments import current_version


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def product_to_dict(p: Product) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "price": float(p.price),
        "status": p.status,
        "created_at": _iso(p.created_at),
    }


def customer_to_dict(c: Customer) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "phone": c.phone,
        "email": c.email,
        "shipping_address": c.shipping_address,
        "is_archived": c.is_archived,
        "date_added": _iso(c.date_added),
    }


def user_to_dict(u: User) -> Dict[str, Any]:
    # без password_hash
    return {
        "id": u.id,
        "username": u.username,
        "name": u.name,
        "role": u.role,
        "status": u.status,
        "last_login_at": _iso(u.last_login_at),
        "created_at": _iso(u.created_at),
    }


def line_item_to_dict(li: LineItem) -> Dict[str, Any]:
    return {
        "id": li.id,
        "product_id": li.product_id,
        "product_name_snapshot": li.product_name_snapshot,
        "catalog_unit_price_snapshot": float(li.catalog_unit_price_snapshot),
        "unit_price_final": float(li.unit_price_final),
        "qty": li.qty,
        "line_total": float(li.line_total),
        "is_price_overridden": li.is_price_overridden,
    }


def version_to_dict(v: AttachmentVersion) -> Dict[str, Any]:
    return {
        "id": v.id,
        "version_number": v.version_number,
        "url": v.url,
        "note": v.note,
        "is_current": v.is_current,
        "created_by_initials": v.created_by_initials,
        "created_at": _iso(v.created_at),
    }


def attachment_to_dict(a: Attachment) -> Dict[str, Any]:
    current = current_version(a)
    return {
        "id": a.id,
        "order_id": a.order_id,
        "label": a.label,
        "attachment_type": a.attachment_type,
        "is_archived": a.is_archived,
        "created_by_initials": a.created_by_initials,
        "created_at": _iso(a.created_at),
        "current_version": version_to_dict(current) if current else None,
        "versions": [version_to_dict(v) for v in a.versions],
    }


def history_to_dict(h: OrderHistory) -> Dict[str, Any]:
    return {
        "id": h.id,
        "event_type": h.event_type,
        "initials": h.initials,
        "actor_user_id": h.actor_user_id,
        "summary": h.summary,
        "details": h.details_json,
        "timestamp": _iso(h.timestamp),
    }


def order_summary(o: Order) -> Dict[str, Any]:
    """Строка для списков и поиска."""
    return {
        "id": o.id,
        "order_number": o.order_number,
        "status": o.status,
        "customer_id": o.customer_id,
        "customer_name": o.customer_name_snapshot,
        "created_at": _iso(o.created_at),
        "finished_at": _iso(o.finished_at),
        "total": float(o.total),
    }


def order_to_dict(o: Order) -> Dict[str, Any]:
    data = order_summary(o)
    data.update({
        "deleted_at": _iso(o.deleted_at),
        "customer": {
            "name": o.customer_name_snapshot,
            "phone": o.customer_phone_snapshot,
            "email": o.customer_email_snapshot,
            "shipping_address": o.customer_shipping_address_snapshot,
        },
        "line_items": [line_item_to_dict(li) for li in o.line_items],
        "attachments": [attachment_to_dict(a) for a in o.attachments if not a.is_archived],
        "history": [history_to_dict(h) for h in o.history],
    })
    return data
