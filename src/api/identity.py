"""Caller identity resolution for incoming requests.

Authentication itself happens upstream; the gateway forwards the verified
user id in the X-User-ID header.
"""

import hashlib
from collections.abc import Mapping
from typing import Any

from fastapi import Request

from validation import CallerIdentity

USER_ID_HEADER = "X-User-ID"


def hash_ip(ip: str | None, salt: str = "") -> str:
    """SHA-256 of the salted client IP. The plain IP is never stored."""
    if not ip:
        return "unknown"
    return hashlib.sha256(f"{salt}{ip}".encode()).hexdigest()


def identity_of(request: Request, body: Mapping[str, Any] | None = None) -> CallerIdentity:
    settings = request.app.state.settings

    user_id = request.headers.get(USER_ID_HEADER) or None
    if settings.api.allow_user_id_override and body:
        override = body.get("user_id")
        if isinstance(override, str) and override:
            user_id = override

    client_ip = request.client.host if request.client else None
    return CallerIdentity(
        user_id=user_id,
        ip_hash=hash_ip(client_ip, settings.security.ip_hash_salt),
        user_agent=request.headers.get("user-agent") or "unknown",
    )
