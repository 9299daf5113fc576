"""General utility helpers shared across modules."""

from __future__ import annotations

from .config import ERROR_BODY_MAX_CHARS


def truncate(text: str | None, limit: int = ERROR_BODY_MAX_CHARS) -> str:
    """Return ``text`` stripped and cut to ``limit`` characters with an ellipsis."""

    if not text:
        return ""
    trimmed = text.strip()
    if len(trimmed) <= limit:
        return trimmed
    return trimmed[:limit] + "..."


def mask_token(token: str | None, visible: int = 4) -> str:
    """Return ``token`` with all but the trailing ``visible`` chars masked."""

    if not token:
        return ""
    visible = max(0, visible)
    if visible == 0:
        return "*" * len(token)
    hidden_length = max(len(token) - visible, 0)
    if hidden_length == 0:
        return token
    return ("*" * hidden_length) + token[-visible:]
