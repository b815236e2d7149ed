"""
Optimizer service: owns every learning component and drives the per-request
predict / allocate / observe cycle.
"""

import gc
import random
from typing import Any, Callable, Dict, List, Mapping, Optional

from mloptimizer.config.base_types import AlertSeverity, AlertType
from mloptimizer.config.config_manager import OptimizerConfig
from mloptimizer.core.anomaly_detector import AnomalyAlert, AnomalyDetector
from mloptimizer.core.load_balancer import AdaptiveLoadBalancer
from mloptimizer.core.predictor import PerformancePredictor
from mloptimizer.core.query_learner import QueryExecution, QueryPatternLearner
from mloptimizer.core.resource_allocator import AllocationDecision, ResourceAllocator
from mloptimizer.core.scaling_advisor import ScalingAdvisor, ScalingRecommendation
from mloptimizer.exceptions import InvalidSampleError
from mloptimizer.monitoring.baseline_tracker import BaselineTracker
from mloptimizer.monitoring.metric_sample import MetricSample
from mloptimizer.monitoring.optimizer_monitor import OptimizerMonitor, OptimizerStats
from mloptimizer.monitoring.prometheus_exporter import PrometheusExporter
from mloptimizer.monitoring.resource_metrics import (
    ProcessSnapshot,
    SystemResources,
    get_system_resources,
    take_process_snapshot,
)
from mloptimizer.monitoring.sample_store import MetricSampleStore
from mloptimizer.utils.logger import configure_logging, get_logger

from .request_context import (
    HandlerResult,
    HeaderValue,
    OptimizationContext,
    OptimizationDecision,
    priority_from_headers,
)
from .training_scheduler import TrainingScheduler

RewardFn = Callable[[AllocationDecision, MetricSample], Optional[float]]


class OptimizerService:
    """Adaptive performance optimizer for one host application.

    The service is an explicit object: build it with a config, ``start()`` it
    alongside the host and ``stop()`` it on shutdown. Request handling goes
    through ``begin`` / ``complete`` / ``fail`` (or ``run`` for hosts that
    hand over a callable).

    Args:
        config: Optimizer configuration; defaults are used when omitted.
        reward_fn: Optional ``(decision, sample) -> reward`` used to credit
            the allocator after each request. Without it the Q-table is
            never updated.
        rng: Random source for allocator exploration.
        resource_probe: Callable returning the current ``SystemResources``.
        process_probe: Callable returning a ``ProcessSnapshot``.
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        reward_fn: Optional[RewardFn] = None,
        rng: Optional[random.Random] = None,
        resource_probe: Callable[[], SystemResources] = get_system_resources,
        process_probe: Callable[[], ProcessSnapshot] = take_process_snapshot,
    ):
        self.config = config or OptimizerConfig()
        configure_logging(self.config.logging)
        self.logger = get_logger(__name__)

        self.reward_fn = reward_fn
        self.resource_probe = resource_probe
        self.process_probe = process_probe

        cfg = self.config
        self.store = MetricSampleStore(
            retention_hours=cfg.metrics.retention_period,
            sweep_interval=cfg.metrics.sweep_interval,
            max_samples=cfg.metrics.max_samples,
            load_window=cfg.metrics.load_window,
        )
        self.baselines = BaselineTracker()
        self.predictor = PerformancePredictor(cfg.predictor)
        self.detector = AnomalyDetector(
            cfg.anomaly, baselines=self.baselines, load_window=cfg.metrics.load_window
        )
        self.allocator = ResourceAllocator(cfg.allocator, rng=rng)
        self.query_learner = QueryPatternLearner(cfg.query)
        self.load_balancer = AdaptiveLoadBalancer(cfg.load_balancer)
        self.scaling_advisor = ScalingAdvisor(cfg.scaling)

        self.monitor = OptimizerMonitor(
            self.store,
            anomaly_history_size=cfg.anomaly.history_size,
            optimization_history_size=cfg.optimization_history_size,
        )
        self.prometheus = PrometheusExporter(
            enabled=cfg.prometheus.enabled, namespace=cfg.prometheus.namespace
        )
        self.scheduler = TrainingScheduler(
            self.store,
            self.predictor,
            self.baselines,
            interval=cfg.training_interval_seconds,
            batch_size=cfg.training.batch_size,
        )

        self.logger.info(f"Optimizer service created: {cfg}")

    # Lifecycle

    def start(self) -> "OptimizerService":
        """Start the retention sweep and training loop"""
        if not self.config.enabled:
            self.logger.info("Optimizer disabled; background tasks not started")
            return self
        self.store.start()
        self.scheduler.start()
        return self

    def stop(self) -> None:
        """Stop background tasks and wait for them to exit"""
        timeout = self.config.training.join_timeout
        self.scheduler.stop(timeout=timeout)
        self.store.stop(timeout=timeout)

    @property
    def is_running(self) -> bool:
        return self.store.is_running and self.scheduler.is_running

    def __enter__(self) -> "OptimizerService":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # Request path

    def begin(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, HeaderValue]] = None,
    ) -> OptimizationContext:
        """Predict and allocate for an incoming request"""
        headers = headers or {}
        ctx = OptimizationContext(
            method=method.upper(),
            path=path,
            headers=headers,
            priority=priority_from_headers(headers),
        )
        if not self.config.enabled:
            return ctx

        features = self.config.features
        self._snapshot_start(ctx)

        if features.performance_prediction:
            try:
                self._predict(ctx)
            except Exception as e:
                self.logger.error(f"Prediction failed for {ctx.endpoint_key}: {e}")

        if features.resource_allocation:
            try:
                ctx.allocation = self.allocator.allocate(
                    request_type=ctx.endpoint_key,
                    estimated_load=self.store.current_load(),
                    available_resources=self.resource_probe(),
                    priority=ctx.priority,
                )
            except Exception as e:
                self.logger.error(f"Allocation failed for {ctx.endpoint_key}: {e}")

        return ctx

    def complete(
        self,
        ctx: OptimizationContext,
        status_code: int = 200,
        response_size: int = 0,
        query_executions: Optional[List[QueryExecution]] = None,
        cache_hit: Optional[bool] = None,
    ) -> Dict[str, str]:
        """Observe a finished request and return the annotation headers"""
        if not self.config.enabled:
            return {}

        if query_executions is not None:
            ctx.query_executions = list(query_executions)
        if cache_hit is not None:
            ctx.cache_hit = cache_hit

        try:
            sample = self._build_sample(ctx, status_code, response_size)
            self.store.record(sample)
            self._observe(ctx, sample)
        except InvalidSampleError as e:
            self.logger.warning(f"Dropping sample: {e}")
        except Exception as e:
            self.logger.error(f"Failed to observe {ctx.endpoint_key}: {e}")

        return ctx.response_headers()

    def fail(self, ctx: OptimizationContext, exc: BaseException) -> None:
        """Record an error sample for a failed handler; never raises"""
        if not self.config.enabled:
            return

        try:
            sample = self._build_sample(ctx, 500, 0, error=str(exc) or type(exc).__name__)
            self.store.record_error(sample)
            self._observe(ctx, sample)
        except Exception as e:
            self.logger.error(f"Failed to record error sample for {ctx.endpoint_key}: {e}")

    def run(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, HeaderValue]],
        handler: Callable[[OptimizationContext], HandlerResult],
    ) -> HandlerResult:
        """Drive one request through the stage for a generic host pipeline.

        Handler exceptions are recorded and re-raised unchanged.
        """
        ctx = self.begin(method, path, headers)
        try:
            result = handler(ctx)
        except Exception as exc:
            self.fail(ctx, exc)
            raise

        result.headers.update(
            self.complete(
                ctx,
                status_code=result.status_code,
                response_size=result.response_size,
                query_executions=result.query_executions or ctx.query_executions,
                cache_hit=result.cache_hit if result.cache_hit is not None else ctx.cache_hit,
            )
        )
        return result

    # Internals

    def _snapshot_start(self, ctx: OptimizationContext) -> None:
        if not self.config.metrics.track_process_resources:
            return
        try:
            ctx.start_snapshot = self.process_probe()
        except Exception as e:
            self.logger.debug(f"Process snapshot unavailable: {e}")

    def _predict(self, ctx: OptimizationContext) -> None:
        history = self.store.recent(self.config.predictor.history_window)
        prediction = self.predictor.predict(ctx.endpoint_key, history)
        ctx.prediction = prediction

        if prediction.confidence > self.config.prediction_threshold:
            action = prediction.recommended_action.value
            ctx.prediction_confidence = prediction.confidence
            ctx.optimization_applied = action

            self.monitor.record_optimization(
                OptimizationDecision(
                    action=action,
                    confidence=prediction.confidence,
                    impact=prediction.expected_duration,
                    endpoint_key=ctx.endpoint_key,
                    metadata={"priority": ctx.priority},
                )
            )
            self.prometheus.record_optimization(action)

    def _build_sample(
        self,
        ctx: OptimizationContext,
        status_code: int,
        response_size: int,
        error: Optional[str] = None,
    ) -> MetricSample:
        memory_delta, cpu_delta = 0.0, 0.0
        if ctx.start_snapshot is not None:
            try:
                memory_delta, cpu_delta = ctx.start_snapshot.delta_to(self.process_probe())
            except Exception as e:
                self.logger.debug(f"Process snapshot unavailable: {e}")

        return MetricSample(
            method=ctx.method,
            path=ctx.path,
            duration=ctx.elapsed_ms(),
            status_code=status_code,
            memory_delta=memory_delta,
            cpu_delta=cpu_delta,
            response_size=response_size,
            query_count=len(ctx.query_executions) if ctx.query_executions else None,
            cache_hit=ctx.cache_hit,
            error=error,
        ).validate()

    def _observe(self, ctx: OptimizationContext, sample: MetricSample) -> None:
        """Post-handler feedback; each step is isolated from the others"""
        features = self.config.features
        ctx.sample = sample
        self.prometheus.record_request(sample)

        if features.anomaly_detection:
            self._run_step("anomaly detection", self._detect, ctx, sample)

        if features.query_optimization and ctx.query_executions and sample.error is None:
            self._run_step(
                "query learning",
                self.query_learner.learn,
                ctx.query_executions,
                sample.duration,
            )

        if features.load_balancing:
            self._run_step("load balancing", self._update_load_balancer, sample)

        if ctx.allocation is not None and self.reward_fn is not None:
            self._run_step("allocator reward", self._credit_reward, ctx.allocation, sample)

        self.prometheus.update_load(self.store.current_load())

    def _run_step(self, name: str, step: Callable[..., Any], *args: Any) -> None:
        try:
            step(*args)
        except Exception as e:
            self.logger.error(f"Observation step '{name}' failed: {e}")

    def _detect(self, ctx: OptimizationContext, sample: MetricSample) -> None:
        history = self.store.recent(self.config.anomaly.history_window)
        alerts = self.detector.detect(
            sample,
            history,
            self.config.optimization,
            now=sample.timestamp,
            current_load=self.store.current_load(),
        )
        ctx.anomalies = alerts
        ctx.anomaly_score = self.detector.score(sample)

        if not alerts:
            return

        self.monitor.record_anomalies(alerts)
        for alert in alerts:
            self.prometheus.record_anomaly(alert.type.value, alert.severity.value)
            if alert.severity == AlertSeverity.CRITICAL:
                self._auto_heal(alert)

    def _auto_heal(self, alert: AnomalyAlert) -> None:
        if alert.type == AlertType.LATENCY:
            self.logger.warning(
                f"Auto-healing: applying latency mitigation for {alert.endpoint_key}"
            )
        elif alert.type == AlertType.MEMORY:
            collected = gc.collect()
            self.logger.warning(f"Auto-healing: garbage collection freed {collected} objects")
        elif alert.type == AlertType.ERROR_RATE:
            self.logger.warning(
                f"Auto-healing: enable a circuit breaker for {alert.endpoint_key}"
            )

    def _update_load_balancer(self, sample: MetricSample) -> None:
        self.load_balancer.update_metrics(
            sample.path, sample.duration, sample.is_success and sample.error is None
        )
        self.prometheus.update_endpoint_health(
            sample.path, self.load_balancer.get_health_score(sample.path)
        )

    def _credit_reward(self, decision: AllocationDecision, sample: MetricSample) -> None:
        reward = self.reward_fn(decision, sample)
        if reward is not None:
            self.allocator.update_q_value(decision.state, decision.strategy, float(reward))

    # Read accessors

    def get_stats(self) -> OptimizerStats:
        return self.monitor.get_stats()

    def get_dashboard_data(self) -> Dict[str, Any]:
        data = self.monitor.get_dashboard_data()
        data["training"] = {
            "cycles": self.scheduler.cycles,
            "failures": self.scheduler.failures,
            "last_trained": self.scheduler.last_trained,
            "running": self.scheduler.is_running,
        }
        data["q_table"] = self.allocator.q_table
        return data

    def get_anomalies(
        self, limit: int = 100, severity: Optional[str] = None
    ) -> List[AnomalyAlert]:
        return self.monitor.get_anomalies(limit=limit, severity=severity)

    def get_optimization_history(self, limit: int = 100) -> List[OptimizationDecision]:
        return self.monitor.get_optimization_history(limit=limit)

    def get_query_suggestions(self) -> Dict[str, List[str]]:
        return self.query_learner.get_optimization_suggestions()

    def get_health_score(self, endpoint: str) -> float:
        return self.load_balancer.get_health_score(endpoint)

    def get_scaling_recommendation(
        self, current_replicas: int = 1
    ) -> Optional[ScalingRecommendation]:
        """Replica recommendation, or None when auto scaling is disabled"""
        if not self.config.features.auto_scaling:
            return None
        return self.scaling_advisor.recommend(
            self.store.recent(self.config.metrics.max_samples),
            current_replicas,
            self.config.optimization,
        )

    def get_prometheus_metrics(self) -> str:
        return self.prometheus.get_metrics()
