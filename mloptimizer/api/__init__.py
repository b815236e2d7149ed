from .api_routes import create_app
from .optimizer_endpoints import get_optimizer, router

__all__ = ["create_app", "get_optimizer", "router"]
