"""FastAPI dependency: ``require_worker_secret``.

- When ``WORKER_SECRET`` is unset every request is allowed.
- When it is set the request must carry ``Authorization: Bearer <secret>``.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Header, HTTPException, status

from rpaworker.config import settings

logger = logging.getLogger("rpaworker.auth")


async def require_worker_secret(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    secret = settings.WORKER_SECRET
    if not secret:
        return
    expected = f"Bearer {secret}"
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected.encode()):
        logger.debug("Rejected request with missing or wrong worker secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
