"""Cache-Control middleware for access decisions.

Every response under the access prefix, errors included, is marked
uncacheable so a CDN or browser never replays a decision for another visit.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

NO_STORE = "no-store, must-revalidate, max-age=0"


class NoStoreMiddleware(BaseHTTPMiddleware):
    """Adds ``Cache-Control: no-store`` to responses under ``path_prefix``."""

    def __init__(self, app: ASGIApp, path_prefix: str = "/api/access") -> None:
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self.path_prefix):
            response.headers["Cache-Control"] = NO_STORE
            response.headers["Pragma"] = "no-cache"
        return response
