"""
services.validation - Request validation shared by the services.

Every check raises ValidationError with the message the user sees;
the API layer turns it into a 400 response.
"""

from __future__ import annotations

from typing import Any, Optional


class ValidationError(Exception):
    """Raised when request data is rejected before touching the DB."""
    pass


def require_text(data: dict, key: str, label: str, max_len: Optional[int] = None) -> str:
    val = str(data.get(key) or "").strip()
    if not val:
        raise ValidationError(f"{label} is required")
    if max_len is not None and len(val) > max_len:
        raise ValidationError(f"{label} must be less than {max_len} characters")
    return val


def optional_text(data: dict, key: str, label: str, max_len: Optional[int] = None) -> Optional[str]:
    raw = data.get(key)
    if raw is None:
        return None
    val = str(raw).strip()
    if max_len is not None and len(val) > max_len:
        raise ValidationError(f"{label} must be less than {max_len} characters")
    return val or None


def positive_int(raw: Any, message: str) -> int:
    """Accept 3, "3"; reject 0, -1, 2.5, "abc", True."""
    if isinstance(raw, bool):
        raise ValidationError(message)
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationError(message)
        raw = int(raw)
    try:
        val = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(message) from None
    if val <= 0:
        raise ValidationError(message)
    return val


def one_of(raw: Any, choices: tuple[str, ...], label: str) -> str:
    val = str(raw or "").strip()
    if val not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}")
    return val


def as_bool(raw: Any, default: bool = False) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ("1", "true", "yes", "on")
