import re
from dataclasses import dataclass

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from workcenter.errors import WorkCenterError
from workcenter.utils.enums import UserRole

# без сессии: (метод, путь)
PUBLIC = {
    ("GET", "/api/health"),
    ("POST", "/api/auth/login"),
    ("GET", "/api/settings/branding/logo"),
}

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

# только ADMIN: (метод или "*", шаблон пути)
ADMIN_ONLY = [
    ("*", re.compile(r"^/api/users(/.*)?$")),
    ("*", re.compile(r"^/api/audit(/.*)?$")),
    ("*", re.compile(r"^/api/settings/branding(/.*)?$")),
    ("POST", re.compile(r"^/api/products/?$")),
    ("PUT", re.compile(r"^/api/products/\d+$")),
    ("PATCH", re.compile(r"^/api/products/\d+/status$")),
    ("POST", re.compile(r"^/api/customers/\d+/archive$")),
    ("PATCH", re.compile(r"^/api/orders/\d+/delete$")),
    ("*", re.compile(r"^/api/orders/export/completed$")),
]


class NotAuthenticated(WorkCenterError):
    status_code = 401


class Forbidden(WorkCenterError):
    status_code = 403


@dataclass
class Principal:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def _is_admin_only(method: str, path: str) -> bool:
    return any((m == "*" or m == method) and rx.match(path) for m, rx in ADMIN_ONLY)


class RBACMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path.rstrip("/") or "/"
        method = request.method

        # Проверяем только API (кроме логина/health)
        if not path.startswith("/api") or (method, path) in PUBLIC or method == "OPTIONS":
            return await call_next(request)

        role = (request.session.get("role") or "").strip().upper()
        if not role or not request.session.get("user_id"):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)

        # logout доступен всем вошедшим
        if path == "/api/auth/logout":
            return await call_next(request)

        if role == UserRole.ADMIN.value:
            return await call_next(request)

        if _is_admin_only(method, path):
            return JSONResponse({"detail": "Admin only"}, status_code=403)

        if role == UserRole.READ_ONLY.value and method not in SAFE_METHODS:
            return JSONResponse({"detail": "Read-only account"}, status_code=403)

        if role not in (UserRole.STANDARD.value, UserRole.READ_ONLY.value):
            return JSONResponse({"detail": "Forbidden"}, status_code=403)

        return await call_next(request)


def get_principal(request: Request) -> Principal:
    """Текущий пользователь из сессии. Доступ уже проверен middleware."""
    user_id = request.session.get("user_id")
    role = request.session.get("role")
    if not user_id or not role:
        raise NotAuthenticated("Not authenticated")
    return Principal(id=int(user_id), role=str(role).upper())


def require_admin(request: Request) -> Principal:
    principal = get_principal(request)
    if not principal.is_admin:
        raise Forbidden("Admin only")
    return principal
