"""
Per-request metric sample data structures.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from mloptimizer.exceptions import InvalidSampleError


def endpoint_key(method: str, path: str) -> str:
    """Identifier grouping samples by HTTP method and path"""
    return f"{method.upper()}:{path}"


@dataclass(frozen=True)
class MetricSample:
    """One observation of a completed (or failed) request"""

    method: str
    path: str
    duration: float  # ms
    status_code: int = 200
    memory_delta: float = 0.0  # bytes
    cpu_delta: float = 0.0  # ms of process CPU time
    response_size: int = 0  # bytes
    query_count: Optional[int] = None
    cache_hit: Optional[bool] = None
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def endpoint_key(self) -> str:
        return endpoint_key(self.method, self.path)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def is_success(self) -> bool:
        return self.status_code < 400

    def validate(self) -> "MetricSample":
        """Raise InvalidSampleError if the observation is malformed"""
        if self.duration < 0:
            raise InvalidSampleError(self.endpoint_key, "negative duration")
        if self.response_size < 0:
            raise InvalidSampleError(self.endpoint_key, "negative response size")
        if not 100 <= self.status_code <= 599:
            raise InvalidSampleError(
                self.endpoint_key, f"status code {self.status_code} out of range"
            )
        return self
