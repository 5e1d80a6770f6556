import time
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from workcenter import config
from workcenter.db import get_db
from workcenter.logger import setup_logger
from workcenter.middleware.rbac import get_principal
from workcenter.models.user import User
from workcenter.schemas import LoginIn
from workcenter.utils.enums import UserStatus
from workcenter.utils.security import verify_password
from workcenter.utils.serializers import user_to_dict

logger = setup_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

login_attempts = {}       # { "ip": {"count": int, "last": timestamp} }


def check_rate_limit(ip: str) -> bool:
    """Проверка лимита по IP"""
    now = time.time()
    data = login_attempts.get(ip)

    if not data:
        return True

    # если ещё идёт блокировка
    if data["count"] >= config.LOGIN_MAX_ATTEMPTS and now - data["last"] < config.LOGIN_BLOCK_SECONDS:
        return False

    return True


def add_attempt(ip: str):
    """Запись неудачной попытки входа"""
    now = time.time()
    attempts = login_attempts.get(ip)
    if not attempts or now - attempts["last"] > config.LOGIN_BLOCK_SECONDS:
        # сбрасываем после блокировки
        login_attempts[ip] = {"count": 1, "last": now}
    else:
        attempts["count"] += 1
        attempts["last"] = now


def reset_attempts(ip: str):
    """Сброс после успешного логина"""
    login_attempts.pop(ip, None)


@router.post("/login")
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    client_ip = request.client.host if request.client else "unknown"

    if not check_rate_limit(client_ip):
        return JSONResponse({"detail": "Too many attempts. Please wait a minute."}, status_code=429)

    username = payload.username.strip().lower()
    user = db.query(User).filter(User.username == username).first()
    if (
        not user
        or user.status != UserStatus.ACTIVE.value
        or not verify_password(payload.password, user.password_hash)
    ):
        add_attempt(client_ip)
        return JSONResponse({"detail": "Invalid credentials"}, status_code=401)

    reset_attempts(client_ip)

    user.last_login_at = datetime.utcnow()
    db.commit()

    # сохраняем в сессии
    request.session["user_id"] = user.id
    request.session["role"] = (user.role or "").strip().upper()
    logger.info(f"Login success: {user.username} role={user.role}")

    return {"user": user_to_dict(user)}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}


@router.get("/me")
def whoami(request: Request, db: Session = Depends(get_db)):
    principal = get_principal(request)
    user = db.get(User, principal.id)
    if not user:
        request.session.clear()
        return JSONResponse({"detail": "Not authenticated"}, status_code=401)
    return user_to_dict(user)
