from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.middleware.rbac import Principal, get_principal
from workcenter.schemas import AttachmentCreate, InitialsIn, VersionCreate
from workcenter.services import attachments as attachment_service
from workcenter.utils.serializers import attachment_to_dict

router = APIRouter(prefix="/api/orders/{order_id}/attachments", tags=["attachments"])


@router.get("")
def list_attachments(
    order_id: int,
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
):
    rows = attachment_service.list_attachments(db, order_id, include_archived=include_archived)
    return [attachment_to_dict(a) for a in rows]


@router.post("")
def create_attachment(
    order_id: int,
    payload: AttachmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    attachment = attachment_service.create_attachment(
        db, order_id,
        label=payload.label,
        url=payload.url,
        initials=payload.initials,
        note=payload.note,
        actor_user_id=principal.id,
    )
    return attachment_to_dict(attachment)


@router.post("/{attachment_id}/versions")
def add_version(
    order_id: int,
    attachment_id: int,
    payload: VersionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    attachment = attachment_service.add_version(
        db, order_id, attachment_id,
        url=payload.url,
        initials=payload.initials,
        note=payload.note,
        actor_user_id=principal.id,
    )
    return attachment_to_dict(attachment)


@router.post("/{attachment_id}/archive")
def archive_attachment(
    order_id: int,
    attachment_id: int,
    payload: InitialsIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    attachment = attachment_service.archive_attachment(
        db, order_id, attachment_id, payload.initials, actor_user_id=principal.id
    )
    return attachment_to_dict(attachment)
