from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# Response Models
class ErrorResponse(BaseModel):
    """Standard error response model"""

    error_code: int
    message: str
    detail: str = ""
    context: Dict[str, Any] = Field(default_factory=dict)
    suggestions: List[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


class StatsResponse(BaseModel):
    """Aggregate optimizer statistics over the recent sample window"""

    total_requests: int
    avg_response_time: float
    error_rate: float
    anomalies_detected: int
    optimizations_applied: int
    current_load: int


class AnomalyResponse(BaseModel):
    severity: str
    type: str
    message: str
    suggestion: str
    endpoint_key: str
    metrics: Dict[str, float]
    timestamp: float


class AnomalyListResponse(BaseModel):
    total: int
    anomalies: List[AnomalyResponse]


class QuerySuggestionsResponse(BaseModel):
    """Slow query patterns and the index columns suggested for them"""

    suggestions: Dict[str, List[str]]
    patterns_tracked: int


class EndpointHealthResponse(BaseModel):
    endpoint: str
    health_score: float
    total_requests: int = 0
    successful_requests: int = 0
    avg_response_time: float = 0.0
    observed: bool = False


class ScalingResponse(BaseModel):
    """Replica recommendation"""

    enabled: bool
    current_replicas: int
    recommended_replicas: Optional[int] = None
    reason: str = ""
    metrics: Dict[str, float] = Field(default_factory=dict)
