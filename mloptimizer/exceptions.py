"""
Optimizer Exception System.

Shared exception hierarchy for configuration, observation and training errors.
"""

import time
from typing import Any, Dict, List, Optional


class OptimizerError(Exception):
    """Base exception for all optimizer errors."""

    def __init__(
            self,
            message: str,
            context: Optional[Dict[str, Any]] = None,
            suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.context = context or {}
        self.suggestions = suggestions or []
        self.timestamp = time.time()
        self.error_type = self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.error_type,
            "message": str(self),
            "context": self.context,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp,
        }


class ConfigurationError(OptimizerError, ValueError):
    """Invalid optimizer configuration, raised at construction time."""

    def __init__(self, field_name: str, reason: str, **kwargs):
        self.field_name = field_name
        self.reason = reason

        message = f"Invalid configuration for '{field_name}': {reason}"

        context = kwargs.pop("context", {})
        context.setdefault("field", field_name)
        super().__init__(message, context=context, **kwargs)


class InvalidSampleError(OptimizerError):
    """A metric sample failed validation and was not recorded."""

    def __init__(self, endpoint_key: str, reason: str, **kwargs):
        self.endpoint_key = endpoint_key
        self.reason = reason

        message = f"Invalid metric sample for '{endpoint_key}': {reason}"
        super().__init__(message, **kwargs)


class TrainingError(OptimizerError):
    """A training cycle failed."""

    def __init__(self, stage: str, cause: Optional[BaseException] = None, **kwargs):
        self.stage = stage
        self.cause = cause

        message = f"Training failed during '{stage}'"
        if cause is not None:
            message += f": {cause}"

        super().__init__(message, **kwargs)


class ServiceNotRunningError(OptimizerError):
    """Optimizer service accessed before it was attached to the app."""

    def __init__(self, **kwargs):
        super().__init__(
            "Optimizer service is not available",
            suggestions=["Attach an OptimizerService to app.state.optimizer"],
            **kwargs,
        )
