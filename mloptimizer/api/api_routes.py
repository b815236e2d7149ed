"""
FastAPI application factory with the optimizer stage installed.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException

from mloptimizer import __version__
from mloptimizer.config.config_manager import OptimizerConfig
from mloptimizer.exceptions import OptimizerError
from mloptimizer.middleware.optimizer_middleware import OptimizerMiddleware
from mloptimizer.service.optimizer_service import OptimizerService
from mloptimizer.utils.logger import get_logger

from . import exception_handlers, optimizer_endpoints

logger = get_logger(__name__)


def create_app(
    config: Optional[OptimizerConfig] = None,
    service: Optional[OptimizerService] = None,
    title: str = "ML Optimizer",
) -> FastAPI:
    """Create a FastAPI application with the optimizer middleware and routes.

    The service is stored on ``app.state.optimizer``; its background tasks are
    started and stopped by the application lifespan.
    """
    service = service or OptimizerService(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting optimizer service...")
        service.start()
        try:
            yield
        finally:
            logger.info("Shutting down optimizer service...")
            service.stop()

    app = FastAPI(
        title=title,
        description="Adaptive performance optimizer",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.optimizer = service

    app.add_middleware(OptimizerMiddleware, service=service)

    # Register exception handlers in order of specificity
    app.add_exception_handler(HTTPException, exception_handlers.http_exception_handler)
    app.add_exception_handler(OptimizerError, exception_handlers.optimizer_exception_handler)
    app.add_exception_handler(Exception, exception_handlers.general_exception_handler)

    app.include_router(optimizer_endpoints.router, tags=["Optimizer"])

    logger.info("Optimizer routes registered")
    return app
