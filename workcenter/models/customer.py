from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from workcenter.db import Base

__all__ = ["Customer"]


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shipping_address: Mapped[str] = mapped_column(String(500))

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    date_added: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


Index("ix_customers_name_phone", Customer.name, Customer.phone)
