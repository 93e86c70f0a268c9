import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.logger import logger
from services.auth_service import Identity, Principal
from services.user_service import UserService


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id into the log context and logs every completed request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        if request.url.path.startswith("/api/"):
            # API payloads are per-user; never let intermediaries cache them
            response.headers.setdefault("Cache-Control", "no-store")
        logger.info("Request completed", status=response.status_code, duration_ms=duration_ms)
        return response


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Resolves the bearer credential into ``request.state.identity`` and
    ``request.state.principal``. Never rejects a request; route
    dependencies decide what a missing principal means.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.identity = None
        request.state.principal = None

        token = _bearer_token(request)
        if token:
            identity: Optional[Identity] = request.app.state.verifier.verify(token)
            if identity:
                request.state.identity = identity
                # Close the lookup session before the handler opens its own
                async with request.app.state.db.session() as session:
                    user = await UserService(session).get_by_auth_uid(identity.uid)
                    if user:
                        request.state.principal = Principal.from_user(user)

                if request.state.principal:
                    structlog.contextvars.bind_contextvars(user_id=request.state.principal.id)
                else:
                    logger.info("Verified identity has no local user", uid=identity.uid)
            else:
                logger.warning("Auth failed: invalid bearer token")

        return await call_next(request)
