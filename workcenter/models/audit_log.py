# workcenter/models/audit_log.py
from datetime import datetime
from sqlalchemy import JSON, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from workcenter.db import Base

__all__ = ["AuditLog"]


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)

    # ORDER_DELETED | CUSTOMER_ARCHIVED | USER_ROLE_CHANGED | ...
    action = Column(String(48), nullable=False, index=True)
    initials = Column(String(3), nullable=True)
    details = Column(String(500), nullable=True)      # человекочитаемое описание
    details_json = Column(JSON, nullable=True)

    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    target_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    actor = relationship("User", foreign_keys=[actor_user_id])
    target = relationship("User", foreign_keys=[target_user_id])
