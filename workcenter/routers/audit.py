from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.models.audit_log import AuditLog

router = APIRouter(prefix="/api/audit", tags=["audit"])


def _user_brief(user):
    if not user:
        return None
    return {"id": user.id, "username": user.username, "name": user.name}


@router.get("")
def list_audit(take: int = Query(50), db: Session = Depends(get_db)):
    take = min(max(take, 1), 200)
    rows = (
        db.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(take)
        .all()
    )
    return [
        {
            "id": r.id,
            "action": r.action,
            "initials": r.initials,
            "details": r.details,
            "details_json": r.details_json,
            "created_at": r.created_at.isoformat() if r.created_at else None,
            "target_user_id": r.target_user_id,
            "actor": _user_brief(r.actor),
            "target": _user_brief(r.target),
        }
        for r in rows
    ]
