"""Shared HTTP response helpers for Strava API interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..utils import truncate

__all__ = ["extract_error"]


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with Strava error info (message + codes) if present.

    Falls back to a truncated copy of the raw body when it is not the usual
    ``{"message": ..., "errors": [...]}`` shape.
    """

    if resp is None:
        return None
    data = _safe_json(resp)
    if isinstance(data, dict):
        parts = _collect_error_parts(data)
        if parts:
            return truncate(" | ".join(parts))
    return _extract_error_text(resp)


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except ValueError as exc:
        logging.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    return truncate(text) or None


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from the standard Strava error response."""

    parts: List[str] = []
    message = data.get("message")
    if message:
        parts.append(str(message))
    errors = data.get("errors")
    if isinstance(errors, list):
        for err in errors:
            if not isinstance(err, dict):
                continue
            resource = err.get("resource")
            field = err.get("field")
            code = err.get("code")
            where = "/".join(filter(None, (resource, field)))
            if code and where:
                parts.append(f"{where}:{code}")
            elif code:
                parts.append(str(code))
    return parts
