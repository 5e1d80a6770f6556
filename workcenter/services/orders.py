from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from workcenter.db import flush_or_conflict, run_with_retry
from workcenter.errors import CustomerNotFound, InvalidState, OrderNotFound, ValidationError
from workcenter.logger import setup_logger
from workcenter.models.customer import Customer
from workcenter.models.order import Order
from workcenter.models.order_history import OrderHistory
from workcenter.services.audit import record_audit
from workcenter.services.pricing import LineRequest, price_lines
from workcenter.services.sequence import allocate_next
from workcenter.utils.enums import STATUS_LABELS, HistoryEvent, OrderStatus
from workcenter.utils.initials import normalize_initials

logger = setup_logger(__name__)

WIP = OrderStatus.WIP.value
FINISHED = OrderStatus.FINISHED.value
DELETED = OrderStatus.DELETED.value

# --------- РАЗРЕШЁННЫЕ ПЕРЕХОДЫ ----------
VALID_NEXT = {
    WIP: {FINISHED},
    FINISHED: {DELETED},
    DELETED: set(),
}

LIST_FILTERS = {WIP, FINISHED, DELETED, "ALL"}


def _transition(order: Order, new_status: str, error: str) -> str:
    old_status = order.status
    if new_status not in VALID_NEXT.get(old_status, set()):
        raise InvalidState(error)
    order.status = new_status
    return old_status


def _lock_order(db: Session, order_id: int) -> Order:
    order = (
        db.query(Order)
        .filter(Order.id == order_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if order is None:
        raise OrderNotFound("Order not found")
    return order


# ---------- СОЗДАНИЕ ----------
def create_order(
    db: Session,
    customer_id: int,
    lines: Iterable[LineRequest] = (),
    actor_user_id: Optional[int] = None,
) -> Order:
    """
    Создаёт заказ в статусе WIP: снимок клиента, строки по каталогу, номер из
    счётчика и записи журнала ORDER_CREATED / LINE_ITEMS_ADDED, всё одним commit.
    """
    lines = list(lines)

    def work() -> Order:
        customer = db.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFound("Customer not found")
        if customer.is_archived:
            raise ValidationError("Customer is archived")

        items = price_lines(db, lines)
        order_number = allocate_next(db)
        now = datetime.utcnow()

        order = Order(
            order_number=order_number,
            status=WIP,
            created_at=now,
            customer_id=customer.id,
            customer_name_snapshot=customer.name,
            customer_phone_snapshot=customer.phone,
            customer_email_snapshot=customer.email,
            customer_shipping_address_snapshot=customer.shipping_address,
            created_by_user_id=actor_user_id,
            line_items=items,
        )
        order.history.append(OrderHistory(
            event_type=HistoryEvent.ORDER_CREATED.value,
            actor_user_id=actor_user_id,
            summary="Order created",
            details_json={"order_number": order_number, "customer_id": customer.id},
            timestamp=now,
        ))
        if items:
            order.history.append(OrderHistory(
                event_type=HistoryEvent.LINE_ITEMS_ADDED.value,
                actor_user_id=actor_user_id,
                summary=f"Line items added: {len(items)}",
                details_json={"count": len(items)},
                timestamp=now,
            ))
        db.add(order)
        flush_or_conflict(db)
        return order

    order = run_with_retry(db, work)
    logger.info(f"Order {order.order_number} created with {len(order.line_items)} line items")
    return order


# ---------- СМЕНА СТАТУСА ----------
def complete_order(db: Session, order_id: int, initials: str, actor_user_id: Optional[int] = None) -> Order:
    initials = normalize_initials(initials)

    def work() -> Order:
        order = _lock_order(db, order_id)
        old_status = _transition(order, FINISHED, "Only WIP orders can be completed")
        now = datetime.utcnow()
        order.finished_at = now
        db.add(OrderHistory(
            order_id=order.id,
            event_type=HistoryEvent.STATUS_CHANGED.value,
            initials=initials,
            actor_user_id=actor_user_id,
            summary=f"Status changed: {STATUS_LABELS[old_status]} → {STATUS_LABELS[FINISHED]}",
            details_json={"from": old_status, "to": FINISHED},
            timestamp=now,
        ))
        return order

    order = run_with_retry(db, work)
    logger.info(f"Order {order.order_number} completed by {initials}")
    return order


def soft_delete_order(db: Session, order_id: int, initials: str, actor_user_id: Optional[int] = None) -> Order:
    """Логическое удаление завершённого заказа: строки и журнал остаются доступны по id."""
    initials = normalize_initials(initials)

    def work() -> Order:
        order = _lock_order(db, order_id)
        old_status = _transition(order, DELETED, "Only completed orders can be deleted")
        now = datetime.utcnow()
        order.deleted_at = now
        db.add(OrderHistory(
            order_id=order.id,
            event_type=HistoryEvent.ORDER_DELETED.value,
            initials=initials,
            actor_user_id=actor_user_id,
            summary=f"Order deleted: {order.order_number}",
            details_json={"from": old_status, "to": DELETED},
            timestamp=now,
        ))
        return order

    order = run_with_retry(db, work)
    logger.info(f"Order {order.order_number} deleted by {initials}")

    record_audit(
        "ORDER_DELETED",
        details=f"Deleted order {order.order_number}",
        initials=initials,
        details_json={"order_id": order.id, "order_number": order.order_number},
        actor_user_id=actor_user_id,
    )
    return order


# ---------- ЧТЕНИЕ ----------
def get_order(db: Session, order_id: int) -> Order:
    """Заказ по id в любом статусе, включая DELETED."""
    order = db.get(Order, order_id)
    if order is None:
        raise OrderNotFound("Order not found")
    return order


def list_orders(db: Session, status: str = WIP) -> List[Order]:
    status = (status or WIP).strip().upper()
    if status not in LIST_FILTERS:
        raise ValidationError("Invalid status filter")

    q = db.query(Order)
    if status == "ALL":
        q = q.filter(Order.status != DELETED)
    else:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def search_orders(db: Session, q: str, limit: int = 10) -> List[Order]:
    q = (q or "").strip()
    if not q:
        return []
    like = f"%{q}%"
    return (
        db.query(Order)
        .filter(Order.status != DELETED)
        .filter(or_(
            Order.order_number.ilike(f"%{q.upper()}%"),
            Order.customer_name_snapshot.ilike(like),
            Order.customer_phone_snapshot.ilike(like),
            Order.customer_email_snapshot.ilike(like),
        ))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def finished_orders(db: Session) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.status == FINISHED)
        .order_by(Order.finished_at.desc(), Order.id.desc())
        .all()
    )
