# workcenter/models/attachment.py
from typing import List, Optional
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workcenter.db import Base

__all__ = ["Attachment", "AttachmentVersion"]


class Attachment(Base):
    __tablename__ = "attachments"
    __table_args__ = (
        # метка уникальна в пределах заказа, включая архивные
        UniqueConstraint("order_id", "label", name="uq_attachments_order_label"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)

    label: Mapped[str] = mapped_column(String(80))
    attachment_type: Mapped[str] = mapped_column(String(24), default="LINK")
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_by_initials: Mapped[str] = mapped_column(String(3))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="attachments")

    # новые версии сверху
    versions: Mapped[List["AttachmentVersion"]] = relationship(
        "AttachmentVersion",
        back_populates="attachment",
        cascade="all, delete-orphan",
        order_by="AttachmentVersion.version_number.desc()",
    )


class AttachmentVersion(Base):
    """Версия ссылки. Только добавляется; старые лишь теряют флаг is_current."""

    __tablename__ = "attachment_versions"
    __table_args__ = (
        UniqueConstraint("attachment_id", "version_number", name="uq_attachment_versions_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    attachment_id: Mapped[int] = mapped_column(ForeignKey("attachments.id"), index=True)

    version_number: Mapped[int] = mapped_column(Integer)
    url: Mapped[str] = mapped_column(String(2048))
    note: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False)
    created_by_initials: Mapped[str] = mapped_column(String(3))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    attachment: Mapped["Attachment"] = relationship("Attachment", back_populates="versions")


# не больше одной текущей версии на вложение, на уровне базы
Index(
    "uq_attachment_versions_current",
    AttachmentVersion.attachment_id,
    unique=True,
    postgresql_where=AttachmentVersion.is_current.is_(True),
    sqlite_where=AttachmentVersion.is_current.is_(True),
)
