from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} non valido")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name}: minimo {min_len} caratteri")
    return value.strip()


def require_time(value: Optional[str], field_name: str) -> str:
    v = (value or "").strip()[:5]
    if not _HHMM.match(v):
        raise ValidationError(f"{field_name} non valido (HH:MM)")
    return v


def optional_time(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return require_time(value, field_name)
