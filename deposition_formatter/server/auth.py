"""Bearer-token access gate for the HTTP API.

WHY: The API is normally run on a reporter's own machine, but some
offices expose it on a shared network. A single shared token is enough
to keep casual callers out without a login flow.

HOW: require_token is a FastAPI dependency attached at router level.
It reads DEPOSITION_API_TOKEN through config.load_api_token() on every
request and compares it against the Authorization header.

RULES:
- No token configured: every request is allowed
- Token configured: "Authorization: Bearer <token>" is required
- Missing or malformed header and wrong token both return 401
- Comparison is constant-time (hmac.compare_digest)
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from deposition_formatter.config import load_api_token

logger = logging.getLogger(__name__)

_SCHEME = "Bearer "


async def require_token(
    authorization: Optional[str] = Header(
        default=None,
        description="'Bearer <token>' when DEPOSITION_API_TOKEN is configured.",
    ),
) -> None:
    expected = load_api_token()
    if expected is None:
        return

    if not authorization or not authorization.startswith(_SCHEME):
        raise HTTPException(
            status_code=401,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    supplied = authorization[len(_SCHEME):].strip()
    if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected request with invalid API token")
        raise HTTPException(
            status_code=401,
            detail="Invalid API token",
            headers={"WWW-Authenticate": "Bearer"},
        )
