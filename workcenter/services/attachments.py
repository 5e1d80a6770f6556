from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workcenter.db import flush_or_conflict, run_with_retry
from workcenter.errors import AttachmentNotFound, DuplicateLabel, OrderNotFound, ValidationError
from workcenter.logger import setup_logger
from workcenter.models.attachment import Attachment, AttachmentVersion
from workcenter.models.order import Order
from workcenter.models.order_history import OrderHistory
from workcenter.utils.enums import HistoryEvent
from workcenter.utils.initials import normalize_initials

logger = setup_logger(__name__)

LABEL_MAX = 80


def _clean_label(label: Optional[str]) -> str:
    label = (label or "").strip()
    if not label or len(label) > LABEL_MAX:
        raise ValidationError(f"Label is required (max {LABEL_MAX} chars)")
    return label


def _clean_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("URL must be a valid http(s) link")
    return url


def _clean_note(note: Optional[str]) -> Optional[str]:
    note = (note or "").strip()
    return note or None


def current_version(attachment: Attachment) -> Optional[AttachmentVersion]:
    """
    Текущая версия вложения.

    Если флаг is_current не ровно у одной версии, берём версию с наибольшим
    номером и пишем warning: это признак порчи данных.
    """
    versions = list(attachment.versions)
    current = [v for v in versions if v.is_current]
    if len(current) == 1:
        return current[0]
    if not versions:
        return None
    logger.warning(
        f"Attachment {attachment.id} has {len(current)} current versions, "
        f"falling back to highest version number"
    )
    return max(versions, key=lambda v: v.version_number)


def list_attachments(db: Session, order_id: int, include_archived: bool = False) -> List[Attachment]:
    if db.get(Order, order_id) is None:
        raise OrderNotFound("Order not found")
    q = db.query(Attachment).filter(Attachment.order_id == order_id)
    if not include_archived:
        q = q.filter(Attachment.is_archived.is_(False))
    return q.order_by(Attachment.created_at.asc(), Attachment.id.asc()).all()


def create_attachment(
    db: Session,
    order_id: int,
    label: str,
    url: str,
    initials: str,
    note: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Attachment:
    """Новое вложение сразу с версией 1 (текущей). Метка уникальна в заказе, архивные тоже считаются."""
    initials = normalize_initials(initials)
    label = _clean_label(label)
    url = _clean_url(url)
    note = _clean_note(note)

    def work() -> Attachment:
        if db.get(Order, order_id) is None:
            raise OrderNotFound("Order not found")

        exists = (
            db.query(Attachment.id)
            .filter(Attachment.order_id == order_id, Attachment.label == label)
            .first()
        )
        if exists:
            raise DuplicateLabel("Attachment label already exists on this order")

        now = datetime.utcnow()
        attachment = Attachment(
            order_id=order_id,
            label=label,
            created_by_initials=initials,
            created_at=now,
            versions=[AttachmentVersion(
                version_number=1,
                url=url,
                note=note,
                is_current=True,
                created_by_initials=initials,
                created_at=now,
            )],
        )
        db.add(attachment)
        try:
            db.flush()
        except IntegrityError as e:
            # параллельный запрос успел создать ту же метку
            raise DuplicateLabel("Attachment label already exists on this order") from e

        db.add(OrderHistory(
            order_id=order_id,
            event_type=HistoryEvent.ATTACHMENT_CREATED.value,
            initials=initials,
            actor_user_id=actor_user_id,
            summary=f"Attachment added: {label}",
            details_json={"attachment_id": attachment.id, "label": label, "version_number": 1},
            timestamp=now,
        ))
        return attachment

    attachment = run_with_retry(db, work)
    logger.info(f"Attachment '{label}' created on order {order_id} by {initials}")
    return attachment


def add_version(
    db: Session,
    order_id: int,
    attachment_id: int,
    url: str,
    initials: str,
    note: Optional[str] = None,
    actor_user_id: Optional[int] = None,
) -> Attachment:
    """
    Добавляет новую текущую версию.

    В одной транзакции под блокировкой строки вложения: все версии теряют
    is_current, затем вставляется версия max+1 с is_current = true. Снаружи
    никогда не видно ноль или две текущие версии.
    """
    initials = normalize_initials(initials)
    url = _clean_url(url)
    note = _clean_note(note)

    def work() -> Attachment:
        attachment = (
            db.query(Attachment)
            .filter(
                Attachment.id == attachment_id,
                Attachment.order_id == order_id,
                Attachment.is_archived.is_(False),
            )
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if attachment is None:
            raise AttachmentNotFound("Attachment not found")

        highest = db.execute(
            select(func.max(AttachmentVersion.version_number))
            .where(AttachmentVersion.attachment_id == attachment.id)
        ).scalar()
        next_version = (highest or 0) + 1

        db.execute(
            update(AttachmentVersion)
            .where(AttachmentVersion.attachment_id == attachment.id)
            .values(is_current=False)
        )
        now = datetime.utcnow()
        db.add(AttachmentVersion(
            attachment_id=attachment.id,
            version_number=next_version,
            url=url,
            note=note,
            is_current=True,
            created_by_initials=initials,
            created_at=now,
        ))
        db.add(OrderHistory(
            order_id=order_id,
            event_type=HistoryEvent.ATTACHMENT_VERSION_ADDED.value,
            initials=initials,
            actor_user_id=actor_user_id,
            summary=f"Attachment updated: {attachment.label} v{next_version}",
            details_json={
                "attachment_id": attachment.id,
                "label": attachment.label,
                "version_number": next_version,
            },
            timestamp=now,
        ))
        flush_or_conflict(db)
        return attachment

    attachment = run_with_retry(db, work)
    db.refresh(attachment)
    logger.info(f"Attachment {attachment_id} on order {order_id} got a new version by {initials}")
    return attachment


def archive_attachment(
    db: Session,
    order_id: int,
    attachment_id: int,
    initials: str,
    actor_user_id: Optional[int] = None,
) -> Attachment:
    """Скрывает вложение из списков и документов. Версии не трогаются."""
    initials = normalize_initials(initials)

    def work() -> Attachment:
        attachment = (
            db.query(Attachment)
            .filter(
                Attachment.id == attachment_id,
                Attachment.order_id == order_id,
                Attachment.is_archived.is_(False),
            )
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if attachment is None:
            raise AttachmentNotFound("Attachment not found")

        attachment.is_archived = True
        db.add(OrderHistory(
            order_id=order_id,
            event_type=HistoryEvent.ATTACHMENT_ARCHIVED.value,
            initials=initials,
            actor_user_id=actor_user_id,
            summary=f"Attachment archived: {attachment.label}",
            details_json={"attachment_id": attachment.id, "label": attachment.label},
        ))
        return attachment

    attachment = run_with_retry(db, work)
    logger.info(f"Attachment {attachment_id} on order {order_id} archived by {initials}")
    return attachment
