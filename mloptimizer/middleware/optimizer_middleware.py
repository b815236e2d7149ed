"""
ASGI pipeline stage wiring the optimizer service around each request.

Handlers can report what they did through ``request.state``:

- ``request.state.query_executions``: list of ``QueryExecution`` (or mappings
  with ``query`` and ``duration`` keys)
- ``request.state.cache_hit``: bool

The per-request ``OptimizationContext`` is available to handlers as
``request.state.optimization``.
"""

from typing import Any, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from mloptimizer.core.query_learner import QueryExecution
from mloptimizer.exceptions import ServiceNotRunningError
from mloptimizer.service.optimizer_service import OptimizerService
from mloptimizer.utils.logger import get_logger

logger = get_logger(__name__)


def _coerce_executions(raw: Any) -> Optional[List[QueryExecution]]:
    if not raw:
        return None

    executions = []
    for item in raw:
        if isinstance(item, QueryExecution):
            executions.append(item)
        elif isinstance(item, dict) and "query" in item:
            executions.append(
                QueryExecution(query=str(item["query"]), duration=float(item.get("duration", 0)))
            )
        else:
            logger.warning(f"Ignoring unrecognised query execution report: {item!r}")
    return executions


class OptimizerMiddleware(BaseHTTPMiddleware):
    """Predict/allocate before the handler, observe after it.

    The service is passed explicitly; when omitted it is looked up on
    ``request.app.state.optimizer``.
    """

    def __init__(self, app: ASGIApp, service: Optional[OptimizerService] = None):
        super().__init__(app)
        self.service = service

    def _resolve_service(self, request: Request) -> OptimizerService:
        if self.service is not None:
            return self.service
        service = getattr(request.app.state, "optimizer", None)
        if service is None:
            raise ServiceNotRunningError()
        return service

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        service = self._resolve_service(request)
        if not service.config.enabled:
            return await call_next(request)

        ctx = service.begin(request.method, request.url.path, request.headers)
        request.state.optimization = ctx

        try:
            response = await call_next(request)
        except Exception as exc:
            service.fail(ctx, exc)
            raise

        try:
            response_size = int(response.headers.get("content-length") or 0)
        except ValueError:
            response_size = 0

        headers = service.complete(
            ctx,
            status_code=response.status_code,
            response_size=response_size,
            query_executions=_coerce_executions(
                getattr(request.state, "query_executions", None)
            ),
            cache_hit=getattr(request.state, "cache_hit", None),
        )
        response.headers.update(headers)
        return response
