# workcenter/models/order.py
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workcenter.db import Base
from workcenter.utils.enums import OrderStatus

__all__ = ["OrderSequence", "Order", "LineItem"]


class OrderSequence(Base):
    """Единственная строка-счётчик номеров заказов (id = 1). Только растёт, не удаляется."""

    __tablename__ = "order_sequence"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)

    # допустимые значения: 'WIP' | 'FINISHED' | 'DELETED'
    status: Mapped[str] = mapped_column(String(16), default=OrderStatus.WIP.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # ссылка на клиента (для поиска) ...
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), index=True)
    # ... и снимок его реквизитов на момент создания, дальше не меняется
    customer_name_snapshot: Mapped[str] = mapped_column(String(120))
    customer_phone_snapshot: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    customer_email_snapshot: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_shipping_address_snapshot: Mapped[str] = mapped_column(String(500))

    created_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    customer = relationship("Customer")

    line_items: Mapped[List["LineItem"]] = relationship(
        "LineItem", back_populates="order", cascade="all, delete-orphan", order_by="LineItem.id"
    )
    attachments: Mapped[List["Attachment"]] = relationship(
        "Attachment", back_populates="order", cascade="all, delete-orphan", order_by="Attachment.id"
    )
    history: Mapped[List["OrderHistory"]] = relationship(
        "OrderHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="[OrderHistory.timestamp, OrderHistory.id]",
    )

    @property
    def total(self) -> Decimal:
        # только сохранённые суммы строк, живые цены каталога не участвуют
        return sum((li.line_total for li in self.line_items), Decimal("0.00"))


class LineItem(Base):
    __tablename__ = "line_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)

    # ссылка на товар, а не владение им
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"), nullable=True)
    product_name_snapshot: Mapped[str] = mapped_column(String(255))

    catalog_unit_price_snapshot: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    unit_price_final: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    qty: Mapped[int] = mapped_column(Integer)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    is_price_overridden: Mapped[bool] = mapped_column(Boolean, default=False)

    order: Mapped["Order"] = relationship("Order", back_populates="line_items")
