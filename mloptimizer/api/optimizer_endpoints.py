"""
Optimizer Read Endpoints (stats, anomalies, suggestions, health, scaling)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from mloptimizer.config.base_types import AlertSeverity
from mloptimizer.exceptions import ServiceNotRunningError
from mloptimizer.service.optimizer_service import OptimizerService
from mloptimizer.utils.logger import get_logger

from .response_model import (
    AnomalyListResponse,
    AnomalyResponse,
    EndpointHealthResponse,
    QuerySuggestionsResponse,
    ScalingResponse,
    StatsResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/optimizer")


def get_optimizer(request: Request) -> OptimizerService:
    """Optimizer service attached to the application"""
    service = getattr(request.app.state, "optimizer", None)
    if service is None:
        raise ServiceNotRunningError()
    return service


@router.get("/stats", response_model=StatsResponse)
async def get_stats(service: OptimizerService = Depends(get_optimizer)):
    """Aggregate statistics over the last 1000 requests"""
    return StatsResponse(**service.get_stats().to_dict())


@router.get("/dashboard")
async def get_dashboard(service: OptimizerService = Depends(get_optimizer)):
    return service.get_dashboard_data()


@router.get("/anomalies", response_model=AnomalyListResponse)
async def get_anomalies(
    limit: int = Query(100, ge=1, le=1000),
    severity: Optional[AlertSeverity] = None,
    service: OptimizerService = Depends(get_optimizer),
):
    """Most recent anomaly alerts, newest last"""
    alerts = service.get_anomalies(
        limit=limit, severity=severity.value if severity else None
    )
    return AnomalyListResponse(
        total=len(alerts),
        anomalies=[AnomalyResponse(**a.to_dict()) for a in alerts],
    )


@router.get("/optimizations")
async def get_optimizations(
    limit: int = Query(100, ge=1, le=1000),
    service: OptimizerService = Depends(get_optimizer),
):
    return [d.to_dict() for d in service.get_optimization_history(limit=limit)]


@router.get("/query-suggestions", response_model=QuerySuggestionsResponse)
async def get_query_suggestions(service: OptimizerService = Depends(get_optimizer)):
    """Index suggestions for slow query patterns"""
    return QuerySuggestionsResponse(
        suggestions=service.get_query_suggestions(),
        patterns_tracked=len(service.query_learner),
    )


@router.get("/health/{endpoint:path}", response_model=EndpointHealthResponse)
async def get_endpoint_health(
    endpoint: str, service: OptimizerService = Depends(get_optimizer)
):
    """Load balancer health score for a logical endpoint (a request path)"""
    if not endpoint.startswith("/"):
        endpoint = f"/{endpoint}"

    score = service.get_health_score(endpoint)
    health = service.load_balancer.get_endpoint_health(endpoint)
    if health is None:
        return EndpointHealthResponse(endpoint=endpoint, health_score=score)

    return EndpointHealthResponse(
        endpoint=endpoint,
        health_score=score,
        total_requests=health.total_requests,
        successful_requests=health.successful_requests,
        avg_response_time=health.avg_response_time,
        observed=True,
    )


@router.get("/scaling", response_model=ScalingResponse)
async def get_scaling(
    current_replicas: int = Query(1, ge=1),
    service: OptimizerService = Depends(get_optimizer),
):
    """Replica recommendation from recent load and latency"""
    recommendation = service.get_scaling_recommendation(current_replicas)
    if recommendation is None:
        return ScalingResponse(
            enabled=False,
            current_replicas=current_replicas,
            reason="Auto scaling disabled",
        )

    return ScalingResponse(
        enabled=True,
        current_replicas=recommendation.current_replicas,
        recommended_replicas=recommendation.recommended_replicas,
        reason=recommendation.reason,
        metrics=recommendation.metrics,
    )


@router.get("/metrics", response_class=PlainTextResponse)
async def get_metrics(service: OptimizerService = Depends(get_optimizer)):
    """Prometheus text exposition"""
    return PlainTextResponse(
        service.get_prometheus_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
