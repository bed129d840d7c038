"""Identity middleware - reads the user id forwarded by the upstream proxy."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.config import settings

logger = logging.getLogger(__name__)


def parse_user_id(raw: str | None) -> int | None:
    """Parse the forwarded header value into a user primary key."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdigit():
        return None
    return int(raw)


class AuthMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.user_id`` from the trusted identity header.

    Authentication itself happens upstream; this layer only forwards the
    already-verified identity to the route dependencies.
    """

    async def dispatch(self, request: Request, call_next):
        raw = request.headers.get(settings.AUTH_HEADER)
        user_id = parse_user_id(raw)
        if raw is not None and user_id is None:
            logger.warning("Ignoring malformed %s header: %r", settings.AUTH_HEADER, raw)
        request.state.user_id = user_id
        return await call_next(request)
