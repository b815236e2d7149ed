from .optimizer_middleware import OptimizerMiddleware

__all__ = ["OptimizerMiddleware"]
