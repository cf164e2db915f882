# eventflow/api/middleware.py
"""
Response-interception middleware that turns error responses of
authenticated callers into ERROR audit events.

Only error responses are recorded here; successful actions are audited by
the handlers themselves, so no action produces two rows.
"""
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from eventflow.models.event import EventType
from eventflow.services.events import RequestContext, record


class ErrorAuditMiddleware(BaseHTTPMiddleware):
    """Record an ERROR event for every 4xx/5xx response sent to a known user."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors are rendered as 500 by the outer ServerErrorMiddleware
            await self._record_error(request, 500, "Internal server error")
            raise

        if response.status_code >= 400:
            message = getattr(request.state, "error_message", None) or "Request failed"
            await self._record_error(request, response.status_code, message)
        return response

    async def _record_error(self, request: Request, status_code: int, message: str) -> None:
        user_id = getattr(request.state, "user_id", None)
        if not user_id:
            return
        await record(
            RequestContext.from_request(request),
            user_id,
            EventType.ERROR,
            message,
            {"statusCode": status_code, "path": request.url.path, "method": request.method},
        )
