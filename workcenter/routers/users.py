from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workcenter.db import get_db
from workcenter.errors import Conflict, UserNotFound, ValidationError
from workcenter.middleware.rbac import Principal, get_principal
from workcenter.models.user import User
from workcenter.schemas import InitialsIn, PasswordIn, UserCreate, UserRoleIn, UserStatusIn
from workcenter.services.audit import record_audit
from workcenter.utils.enums import UserRole, UserStatus
from workcenter.utils.initials import normalize_initials
from workcenter.utils.security import hash_password
from workcenter.utils.serializers import user_to_dict

router = APIRouter(prefix="/api/users", tags=["users"])

ROLES = {r.value for r in UserRole}
STATUSES = {s.value for s in UserStatus}


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound("User not found")
    return user


def _check_password(password: str) -> str:
    password = (password or "").strip()
    if len(password) < 4:
        raise ValidationError("Password must be at least 4 characters")
    return password


# список пользователей
@router.get("")
def list_users(db: Session = Depends(get_db)):
    users = db.query(User).order_by(User.created_at.asc(), User.id.asc()).all()
    return [user_to_dict(u) for u in users]


# создание
@router.post("")
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    username = (payload.username or "").strip().lower()
    if len(username) < 3:
        raise ValidationError("Username must be at least 3 characters")
    password = _check_password(payload.password)
    role = (payload.role or UserRole.STANDARD.value).strip().upper()
    if role not in ROLES:
        raise ValidationError("Invalid role")

    # проверка на уникальность
    exists = db.query(User).filter(User.username == username).first()
    if exists:
        raise Conflict("Username already exists")

    user = User(
        username=username,
        name=(payload.name or "").strip() or None,
        password_hash=hash_password(password),
        role=role,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    record_audit(
        "USER_CREATED",
        details=f"Created user {username} with role {role}",
        details_json={"role": role},
        actor_user_id=principal.id,
        target_user_id=user.id,
    )
    return user_to_dict(user)


@router.patch("/{user_id}/status")
def set_user_status(
    user_id: int,
    payload: UserStatusIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(payload.initials)
    status = (payload.status or "").strip().upper()
    if status not in STATUSES:
        raise ValidationError("Invalid status")
    if principal.id == user_id and status == UserStatus.DISABLED.value:
        raise ValidationError("Cannot disable yourself")

    user = _get_user(db, user_id)
    user.status = status
    db.commit()
    db.refresh(user)

    record_audit(
        "USER_STATUS_CHANGED",
        details=f"Status set to {status}",
        initials=initials,
        details_json={"status": status},
        actor_user_id=principal.id,
        target_user_id=user.id,
    )
    return user_to_dict(user)


@router.patch("/{user_id}/role")
def set_user_role(
    user_id: int,
    payload: UserRoleIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(payload.initials)
    role = (payload.role or "").strip().upper()
    if role not in ROLES:
        raise ValidationError("Invalid role")
    if principal.id == user_id:
        raise ValidationError("You cannot change your own role")

    user = _get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)

    record_audit(
        "USER_ROLE_CHANGED",
        details=f"Role set to {role}",
        initials=initials,
        details_json={"role": role},
        actor_user_id=principal.id,
        target_user_id=user.id,
    )
    return user_to_dict(user)


@router.post("/{user_id}/reset-password")
def reset_password(
    user_id: int,
    payload: PasswordIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    password = _check_password(payload.password)
    user = _get_user(db, user_id)
    user.password_hash = hash_password(password)
    db.commit()

    record_audit(
        "USER_PASSWORD_RESET",
        details=f"Password reset for {user.username}",
        actor_user_id=principal.id,
        target_user_id=user.id,
    )
    return {"ok": True}


# "удаление" = отключение: на пользователя ссылаются журнал и аудит
@router.post("/{user_id}/delete")
def delete_user(
    user_id: int,
    payload: InitialsIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(payload.initials)
    if principal.id == user_id:
        raise ValidationError("You cannot delete your own user")

    user = _get_user(db, user_id)
    user.status = UserStatus.DISABLED.value
    db.commit()
    db.refresh(user)

    record_audit(
        "USER_DELETED",
        details=f"Deleted user {user.username}",
        initials=initials,
        details_json={"username": user.username},
        actor_user_id=principal.id,
        target_user_id=user.id,
    )
    return {"ok": True, "user": user_to_dict(user)}
