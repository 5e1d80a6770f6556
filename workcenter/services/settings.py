from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from workcenter import config
from workcenter.models.setting import Setting

COMPANY_NAME = "company_name"
LOGO_PATH = "logo_path"
BRAND_NAME = "brand_name"


def get_settings(db: Session, keys: Optional[Iterable[str]] = None) -> Dict[str, str]:
    q = db.query(Setting)
    if keys is not None:
        q = q.filter(Setting.key.in_(list(keys)))
    return {s.key: s.value for s in q.all()}


def set_setting(db: Session, key: str, value: str) -> Setting:
    """upsert; commit на стороне вызывающего."""
    row = db.get(Setting, key)
    if row is None:
        row = Setting(key=key, value=value)
        db.add(row)
    else:
        row.value = value
    return row


def brand_name(db: Session) -> str:
    values = get_settings(db, [COMPANY_NAME, BRAND_NAME])
    return values.get(COMPANY_NAME) or values.get(BRAND_NAME) or config.DEFAULT_BRAND_NAME
