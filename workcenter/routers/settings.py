from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from workcenter import config
from workcenter.db import get_db
from workcenter.errors import NotFound, ValidationError
from workcenter.middleware.rbac import Principal, get_principal
from workcenter.schemas import CompanyNameIn
from workcenter.services import settings as settings_service
from workcenter.services.audit import record_audit
from workcenter.utils.initials import normalize_initials

router = APIRouter(prefix="/api/settings", tags=["settings"])

LOGO_EXTENSIONS = (".png", ".jpg", ".jpeg", ".svg")
LOGO_MAX_BYTES = 2 * 1024 * 1024


def _branding(db: Session) -> dict:
    values = settings_service.get_settings(
        db, [settings_service.COMPANY_NAME, settings_service.LOGO_PATH]
    )
    return {
        "company_name": values.get(settings_service.COMPANY_NAME, ""),
        "logo_url": values.get(settings_service.LOGO_PATH, ""),
    }


@router.get("")
def all_settings(db: Session = Depends(get_db)):
    return settings_service.get_settings(db)


@router.get("/branding")
def get_branding(db: Session = Depends(get_db)):
    return _branding(db)


@router.post("/branding/company-name")
def set_company_name(
    payload: CompanyNameIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(payload.initials)
    company_name = (payload.company_name or "").strip()
    settings_service.set_setting(db, settings_service.COMPANY_NAME, company_name)
    db.commit()

    record_audit(
        "BRANDING_COMPANY_NAME_CHANGED",
        details=f"Company name set to {company_name}",
        initials=initials,
        details_json={"company_name": company_name},
        actor_user_id=principal.id,
    )
    return {"ok": True, "company_name": company_name}


@router.post("/branding/logo")
def upload_logo(
    logo: UploadFile = File(...),
    initials: str = Form(""),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    initials = normalize_initials(initials)
    ext = Path(logo.filename or "").suffix.lower()
    if ext not in LOGO_EXTENSIONS:
        raise ValidationError("Logo must be a png, jpg or svg file")

    content = logo.file.read(LOGO_MAX_BYTES + 1)
    if len(content) > LOGO_MAX_BYTES:
        raise ValidationError("Logo must be 2 MB or smaller")

    # ---- один логотип: старые файлы с другим расширением убираем ----
    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    for old_ext in LOGO_EXTENSIONS:
        (config.UPLOAD_DIR / f"logo{old_ext}").unlink(missing_ok=True)
    filename = f"logo{ext}"
    (config.UPLOAD_DIR / filename).write_bytes(content)

    rel_path = f"/uploads/{filename}"
    settings_service.set_setting(db, settings_service.LOGO_PATH, rel_path)
    db.commit()

    record_audit(
        "BRANDING_LOGO_UPLOADED",
        details=f"Logo uploaded: {filename}",
        initials=initials,
        details_json={"logo_path": rel_path},
        actor_user_id=principal.id,
    )
    return {"ok": True, "logo_path": rel_path}


@router.get("/branding/logo")
def get_logo():
    for ext in LOGO_EXTENSIONS:
        path = config.UPLOAD_DIR / f"logo{ext}"
        if path.exists():
            return FileResponse(path)
    raise NotFound("No logo uploaded")
