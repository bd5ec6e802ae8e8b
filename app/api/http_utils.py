from __future__ import annotations

"""
HTTP Utilities
==============

Shared helpers for API routers:

- Client IP resolution (proxy/CDN aware, opt-in)
- No-store JSON helper for responses carrying signed URLs
"""

import ipaddress
import os
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

__all__ = ["get_client_ip", "json_no_store"]


# ─────────────────────────────────────────────────────────────────────────────
# 🌐 Client IP Resolution
# ─────────────────────────────────────────────────────────────────────────────

def _parse_ip(value: Optional[str]) -> Optional[str]:
    """Parse an IP (v4/v6) possibly carrying a zone id or port; None if invalid."""
    if not value:
        return None
    value = value.split("%", 1)[0].strip()
    if value.startswith("["):
        host = value.split("]", 1)[0].lstrip("[")
    else:
        host = value.split(":")[0] if value.count(":") == 1 else value
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return None
    return host


def get_client_ip(request: Request) -> str:
    """Best-guess client IP for logging and throttling.

    Uses the socket peer by default. With ``TRUST_FORWARD_HEADERS=1`` the
    edge headers are consulted first, in order: ``CF-Connecting-IP``,
    ``True-Client-IP``, ``X-Real-Ip``, then the left-most ``X-Forwarded-For`` hop.
    """
    peer = request.client.host if request.client and request.client.host else None
    peer_ip = _parse_ip(peer)

    if os.environ.get("TRUST_FORWARD_HEADERS") not in {"1", "true", "True"}:
        return peer_ip or "unknown"

    for hdr in ("cf-connecting-ip", "true-client-ip", "x-real-ip"):
        ip = _parse_ip(request.headers.get(hdr))
        if ip:
            return ip

    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = _parse_ip(xff.split(",")[0].strip())
        if ip:
            return ip

    return peer_ip or "unknown"


# ─────────────────────────────────────────────────────────────────────────────
# 🧊 No-store JSON
# ─────────────────────────────────────────────────────────────────────────────

def json_no_store(payload: Any, status_code: int = 200) -> JSONResponse:
    """JSON response that intermediaries and browsers must not cache."""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    resp = JSONResponse(content=payload, status_code=status_code)
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"
    return resp
