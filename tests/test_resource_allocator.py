"""Tests for the epsilon-greedy resource allocator."""

import random
from collections import Counter

import pytest

from mloptimizer.config import AllocationAction, AllocatorSettings
from mloptimizer.core import ResourceAllocator
from mloptimizer.core.resource_allocator import ACTIONS
from mloptimizer.monitoring import SystemResources

RESOURCES = SystemResources(memory=8000.0, cpu=80.0, available_workers=4)


def _greedy(**kwargs) -> ResourceAllocator:
    return ResourceAllocator(AllocatorSettings(epsilon=0.0, **kwargs), rng=random.Random(1))


class TestStateDiscretisation:
    @pytest.mark.parametrize(
        "load, memory, expected",
        [
            (0, 500, "low_low"),
            (49.9, 999, "low_low"),
            (50, 1000, "medium_medium"),
            (79, 4999, "medium_medium"),
            (80, 5000, "high_high"),
            (200, 100, "high_low"),
        ],
    )
    def test_levels(self, load, memory, expected):
        allocator = _greedy()
        resources = SystemResources(memory=memory, cpu=50, available_workers=1)

        assert allocator.get_state(load, resources) == expected


class TestActionSelection:
    def test_greedy_always_picks_argmax(self):
        allocator = _greedy()
        allocator.update_q_value("low_high", AllocationAction.DECREASE, 5.0)
        allocator.update_q_value("low_high", AllocationAction.INCREASE, 1.0)

        chosen = {allocator.select_action("low_high") for _ in range(1000)}

        assert chosen == {AllocationAction.DECREASE}

    def test_ties_resolve_to_maintain(self):
        allocator = _greedy()

        assert allocator.select_action("medium_medium") == AllocationAction.MAINTAIN

    def test_full_exploration_is_uniform(self):
        allocator = ResourceAllocator(AllocatorSettings(epsilon=1.0), rng=random.Random(42))
        allocator.update_q_value("low_low", AllocationAction.INCREASE, 100.0)

        counts = Counter(allocator.select_action("low_low") for _ in range(20000))

        assert set(counts) == set(ACTIONS)
        for action in ACTIONS:
            assert abs(counts[action] / 20000 - 0.25) < 0.02


class TestAllocation:
    def test_normal_priority_default_action(self):
        decision = _greedy().allocate("GET:/users", 10, RESOURCES)

        assert decision.strategy == AllocationAction.MAINTAIN
        assert decision.state == "low_high"
        assert decision.memory == round(8000 * 0.1 * 0.8)
        assert decision.cpu == round(80 * 0.1 * 0.8)
        assert decision.workers == 1

    def test_high_priority_with_increase(self):
        allocator = _greedy()
        allocator.update_q_value("low_high", AllocationAction.INCREASE, 1.0)

        decision = allocator.allocate("GET:/users", 10, RESOURCES, priority="high")

        assert decision.strategy == AllocationAction.INCREASE
        assert decision.memory == round(8000 * 0.1 * 1.5 * 1.3)
        assert decision.cpu == round(80 * 0.1 * 1.5 * 1.3)
        assert decision.workers == 2

    def test_low_priority_keeps_one_worker(self):
        decision = _greedy().allocate("GET:/users", 10, RESOURCES, priority="low")

        assert decision.memory == round(8000 * 0.1 * 0.5 * 0.8)
        assert decision.workers == 1

    def test_unknown_priority_is_normal(self):
        decision = _greedy().allocate("GET:/users", 10, RESOURCES, priority="urgent")

        assert decision.memory == round(8000 * 0.1 * 0.8)


class TestQLearning:
    def test_update_moves_towards_reward(self):
        allocator = _greedy()

        first = allocator.update_q_value("low_low", AllocationAction.MAINTAIN, 1.0)
        second = allocator.update_q_value("low_low", AllocationAction.MAINTAIN, 1.0)

        assert first == pytest.approx(0.1)
        assert second == pytest.approx(0.19)
        assert allocator.q_table == {"low_low": {"maintain": pytest.approx(0.19)}}

    def test_zero_reward_leaves_fresh_entry_at_zero(self):
        allocator = _greedy()

        assert allocator.update_q_value("low_low", "adaptive", 0.0) == 0.0

    def test_q_table_is_a_copy(self):
        allocator = _greedy()
        allocator.update_q_value("low_low", AllocationAction.MAINTAIN, 1.0)

        allocator.q_table["low_low"]["maintain"] = 99.0

        assert allocator.q_table["low_low"]["maintain"] == pytest.approx(0.1)
