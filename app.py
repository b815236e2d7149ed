"""
Demo FastAPI application with the adaptive optimizer installed.

Run with ``python app.py --config mloptimizer.yaml`` or through any ASGI
server pointing at ``app:app``.
"""

import argparse
import asyncio
import logging
import random
import sys

from fastapi import Request

from mloptimizer.api import create_app
from mloptimizer.config import load_config
from mloptimizer.core import QueryExecution

logger = logging.getLogger(__name__)


def build_demo_app(config_path: str = None):
    """Optimizer app plus a few demo routes that report queries and cache use"""
    app = create_app(load_config(config_path), title="ML Optimizer Demo")

    @app.get("/users")
    async def list_users(request: Request):
        delay = random.uniform(0.005, 0.03)
        await asyncio.sleep(delay)
        request.state.query_executions = [
            QueryExecution(query="SELECT * FROM users WHERE active = 1", duration=delay * 1000)
        ]
        request.state.cache_hit = random.random() < 0.5
        return {"users": ["alice", "bob"]}

    @app.get("/users/{user_id}")
    async def get_user(user_id: int, request: Request):
        await asyncio.sleep(random.uniform(0.01, 0.2))
        request.state.query_executions = [
            QueryExecution(
                query=f"SELECT * FROM users u JOIN orders o ON user_id = u.id WHERE u.id = {user_id}",
                duration=150.0,
            )
        ]
        return {"id": user_id}

    @app.get("/prediction")
    async def current_prediction(request: Request):
        ctx = request.state.optimization
        return {
            "endpoint": ctx.endpoint_key,
            "priority": ctx.priority,
            "optimization": ctx.optimization_applied,
            "allocation": ctx.allocation.to_dict() if ctx.allocation else None,
        }

    return app


def main() -> None:
    """Main entry point for the demo application"""
    parser = argparse.ArgumentParser(description="Adaptive optimizer demo server")
    parser.add_argument("--config", help="Path to YAML/JSON optimizer config")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    try:
        import uvicorn

        app = build_demo_app(args.config)
        logger.info(f"Starting demo server on {args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start demo server: {e}")
        sys.exit(1)


# Create the app instance for ASGI servers (uvicorn app:app)
app = build_demo_app()


if __name__ == "__main__":
    main()
