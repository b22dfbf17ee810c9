from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping

from fastapi import Request

from .config import Settings

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when an inline-hook call does not carry the shared secret."""


def is_authorized(headers: Mapping[str, str], settings: Settings) -> bool:
    """
    Check the shared-secret header of an inbound call.

    - the header named by `auth_header_key` must equal `auth_header_value` exactly
    - an unset or empty secret rejects everything (never "no auth required")
    """
    expected = settings.auth_header_value
    if not expected:
        return False

    incoming = headers.get(settings.auth_header_key)
    if incoming is None:
        return False

    # Header values arrive decoded as latin-1; recover the raw bytes the
    # caller sent and compare them with the configured secret's UTF-8 form.
    try:
        raw = incoming.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(raw, expected.encode())


def require_auth(request: Request) -> None:
    """FastAPI dependency guarding the hook endpoints."""
    settings: Settings = request.app.state.settings
    if is_authorized(request.headers, settings):
        return

    logger.warning(
        "auth.rejected",
        extra={
            "path": request.url.path,
            "client_host": request.client.host if request.client else None,
            "header_present": settings.auth_header_key in request.headers,
            "secret_configured": bool(settings.auth_header_value),
        },
    )
    raise AuthError("Unauthorized")
