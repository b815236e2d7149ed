"""
Resource Allocator

Tabular Q-learning over a coarse (load, memory) state space. Each request is
given a per-request resource budget chosen by an epsilon-greedy policy.
"""

import random
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from mloptimizer.config.base_types import AllocationAction, Level, Priority
from mloptimizer.config.core_configs import AllocatorSettings
from mloptimizer.monitoring.resource_metrics import SystemResources
from mloptimizer.utils.logger import get_logger

ACTIONS = (
    AllocationAction.INCREASE,
    AllocationAction.DECREASE,
    AllocationAction.MAINTAIN,
    AllocationAction.ADAPTIVE,
)


@dataclass
class AllocationDecision:
    """Per-request resource budget"""

    memory: int  # MB
    cpu: int  # percent
    workers: int
    strategy: AllocationAction
    state: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "memory": self.memory,
            "cpu": self.cpu,
            "workers": self.workers,
            "strategy": self.strategy.value,
            "state": self.state,
        }


def _level(value: float, bounds: Tuple[float, float]) -> str:
    low, high = bounds
    if value < low:
        return Level.LOW
    if value < high:
        return Level.MEDIUM
    return Level.HIGH


class ResourceAllocator:
    """Epsilon-greedy Q-learning resource allocator"""

    def __init__(
        self,
        settings: Optional[AllocatorSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or AllocatorSettings()
        self.rng = rng or random.Random()
        self._q_table: Dict[str, Dict[AllocationAction, float]] = {}
        self._lock = threading.RLock()

        self.logger = get_logger(__name__)

    def get_state(self, estimated_load: float, resources: SystemResources) -> str:
        """Discretise load and available memory into a state label"""
        load_level = _level(estimated_load, self.settings.load_thresholds)
        memory_level = _level(resources.memory, self.settings.memory_thresholds)
        return f"{load_level}_{memory_level}"

    def select_action(self, state: str) -> AllocationAction:
        """Explore with probability epsilon, otherwise exploit the Q-table.

        Unvisited actions count as zero. Ties resolve to ``maintain``, and
        then to the first action in declaration order.
        """
        with self._lock:
            values = dict(self._q_table.setdefault(state, {}))
            explore = self.rng.random() < self.settings.epsilon
            if explore:
                return self.rng.choice(ACTIONS)

        best = AllocationAction.MAINTAIN
        best_value = values.get(best, 0.0)
        for action in ACTIONS:
            value = values.get(action, 0.0)
            if value > best_value:
                best, best_value = action, value
        return best

    def allocate(
        self,
        request_type: str,
        estimated_load: float,
        available_resources: SystemResources,
        priority: str = Priority.NORMAL,
    ) -> AllocationDecision:
        """Choose a resource budget for one request.

        Args:
            request_type: Endpoint key of the request (for logging).
            estimated_load: Current load used for state discretisation.
            available_resources: Snapshot of free memory (MB) and CPU (%).
            priority: ``high``, ``normal`` or ``low``; unknown values are
                treated as ``normal``.
        """
        s = self.settings
        state = self.get_state(estimated_load, available_resources)
        action = self.select_action(state)

        priority_multiplier = s.priority_multipliers.get(priority, 1.0)
        action_multiplier = (
            s.increase_multiplier
            if action == AllocationAction.INCREASE
            else s.default_multiplier
        )
        scale = priority_multiplier * action_multiplier

        decision = AllocationDecision(
            memory=round(available_resources.memory * s.base_fraction * scale),
            cpu=round(available_resources.cpu * s.base_fraction * scale),
            workers=max(1, round(s.base_workers * priority_multiplier)),
            strategy=action,
            state=state,
        )

        self.logger.debug(
            f"Allocated {decision.memory}MB/{decision.cpu}% "
            f"x{decision.workers} for {request_type} ({state}, {action.value})"
        )
        return decision

    def update_q_value(
        self, state: str, action: AllocationAction, reward: float
    ) -> float:
        """One-step Q update with a zero future-value term; returns the new Q"""
        s = self.settings
        action = AllocationAction(action)
        with self._lock:
            state_actions = self._q_table.setdefault(state, {})
            current = state_actions.get(action, 0.0)
            updated = current + s.learning_rate * (
                reward + s.discount_factor * 0 - current
            )
            state_actions[action] = updated
        return updated

    @property
    def q_table(self) -> Dict[str, Dict[str, float]]:
        """Copy of the Q-table keyed by action value"""
        with self._lock:
            return {
                state: {a.value: v for a, v in actions.items()}
                for state, actions in self._q_table.items()
            }
