from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from workcenter import config
from workcenter.db import init_db
from workcenter.errors import NotFound, WorkCenterError
from workcenter.logger import setup_logger
from workcenter.middleware.rbac import RBACMiddleware

# модели до create_all(), чтобы SQLAlchemy знал про классы и связи
import workcenter.models  # noqa: F401

logger = setup_logger(__name__)


# ==== Ошибки ====
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(WorkCenterError)
    async def domain_error(request: Request, exc: WorkCenterError):
        # not found: всегда без подробностей
        message = "Not found" if isinstance(exc, NotFound) else exc.message
        return JSONResponse({"detail": message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def invalid_input(request: Request, exc: RequestValidationError):
        return JSONResponse({"detail": "Invalid input"}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse({"detail": "Internal server error"}, status_code=500)


# ==== FastAPI app ====
app = FastAPI(title=config.APP_NAME)

# Проверка доступа по ролям (читает сессию, поэтому добавляется раньше SessionMiddleware)
app.add_middleware(RBACMiddleware)

# Сессии (user_id / role)
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY, same_site="lax")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# ==== Routers ====
from workcenter.routers import attachments, audit, auth, customers, orders, products, search, settings, users  # noqa: E402

app.include_router(auth.router)
app.include_router(customers.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(attachments.router)
app.include_router(settings.router)
app.include_router(users.router)
app.include_router(audit.router)
app.include_router(search.router)

# ==== Static (логотип) ====
config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(config.UPLOAD_DIR)), name="uploads")


@app.get("/api/health")
def health():
    return {"ok": True}


@app.on_event("startup")
def startup_event():
    logger.info(f"Starting {config.APP_NAME} ({config.ENV})")
    init_db()
