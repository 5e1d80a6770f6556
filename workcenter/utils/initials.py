import re
from typing import Optional

from workcenter.errors import ValidationError

_INITIALS_RE = re.compile(r"^[A-Z]{2,3}$")


def normalize_initials(value: Optional[str]) -> str:
    """Инициалы для подписи действий: 2–3 латинские буквы, в верхнем регистре."""
    initials = str(value or "").strip().upper()
    if not _INITIALS_RE.match(initials):
        raise ValidationError("Initials must be 2–3 letters")
    return initials
