from typing import Optional

from workcenter.db import SessionLocal
from workcenter.logger import setup_logger
from workcenter.models.audit_log import AuditLog

logger = setup_logger(__name__)


def record_audit(
    action: str,
    details: str = "",
    initials: Optional[str] = None,
    details_json: Optional[dict] = None,
    actor_user_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
) -> None:
    """
    Пишет запись общего аудита в отдельной сессии.

    Вызывается после commit основной операции. Ошибка аудита логируется и
    не откатывает и не блокирует основное действие.
    """
    db = SessionLocal()
    try:
        db.add(AuditLog(
            action=action,
            details=details,
            initials=initials,
            details_json=details_json or {},
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
        ))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Audit log failed for {action}")
    finally:
        db.close()
