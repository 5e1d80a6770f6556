# workcenter/models/order_history.py
from typing import Optional
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workcenter.db import Base

__all__ = ["OrderHistory"]


class OrderHistory(Base):
    """Журнал заказа: только добавление, записи не меняются и не удаляются."""

    __tablename__ = "order_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)

    event_type: Mapped[str] = mapped_column(String(40))
    initials: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    summary: Mapped[str] = mapped_column(String(255))
    details_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    order = relationship("Order", back_populates="history")
