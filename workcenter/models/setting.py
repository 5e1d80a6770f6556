from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from workcenter.db import Base

__all__ = ["Setting"]


class Setting(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), default="")
