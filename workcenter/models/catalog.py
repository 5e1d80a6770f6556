from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from workcenter.db import Base
from workcenter.utils.enums import ProductStatus

__all__ = ["Product"]


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    # ACTIVE | DISABLED: отключённые не показываются в выборе, но цены старых заказов не трогаем
    status: Mapped[str] = mapped_column(String(16), default=ProductStatus.ACTIVE.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
