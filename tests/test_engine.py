"""Tests for ccyoe.engine — per-step accumulation, triggering and events."""

from __future__ import annotations

import pytest

from ccyoe.engine import EngineState, OptimizationEngine, RebalanceEvent
from ccyoe.errors import ConfigMismatch, InvalidConfig, MalformedSnapshot
from tests.conftest import TARGETS, make_config, make_snapshot, make_snapshots


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> OptimizationEngine:
    return OptimizationEngine(make_config())


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_rejects_non_config(self):
        with pytest.raises(InvalidConfig):
            OptimizationEngine({"target_yields": TARGETS})

    def test_initial_state_empty_accumulator(self, engine: OptimizationEngine):
        state = engine.initial_state()
        assert dict(state.accumulated_excess) == {"A": 0, "B": 0, "C": 0}
        assert state.total_accumulated_bp == 0


class TestReferenceScenarioStep:
    """Single snapshot A=500, B=900, C=2500 with threshold 100."""

    @pytest.fixture
    def stepped(self, engine: OptimizationEngine):
        return engine.step(engine.initial_state(), make_snapshot({"A": 500, "B": 900, "C": 2500}))

    def test_event_fires(self, stepped):
        _, event = stepped
        assert isinstance(event, RebalanceEvent)
        assert event.total_excess_bp == 500
        assert event.accumulated_excess_bp == 500

    def test_event_amounts(self, stepped):
        _, event = stepped
        assert dict(event.buckets) == {
            "under_supplied": 200,
            "strategic_growth": 150,
            "proportional": 100,
            "treasury": 50,
        }
        assert dict(event.allocations) == {"A": 100, "B": 280, "C": 70}
        assert event.treasury_bp == 50

    def test_effective_yields(self, stepped):
        state, _ = stepped
        # sources are capped at target, then every asset adds what it received
        assert dict(state.effective_yields) == {"A": 600, "B": 1180, "C": 2070}

    def test_accumulator_reset(self, stepped):
        state, _ = stepped
        assert state.total_accumulated_bp == 0

    def test_yield_conserved_minus_treasury(self, stepped):
        state, event = stepped
        assert sum(state.effective_yields.values()) + event.treasury_bp == 500 + 900 + 2500

    def test_to_dict(self, stepped):
        _, event = stepped
        payload = event.to_dict()
        assert payload["total_excess_bp"] == 500
        assert payload["allocations"] == {"A": 100, "B": 280, "C": 70}
        assert isinstance(payload["buckets"], dict)


def test_balanced_snapshot_no_event(engine: OptimizationEngine):
    start = engine.initial_state()
    state, event = engine.step(start, make_snapshot(dict(TARGETS)))

    assert event is None
    assert dict(state.accumulated_excess) == dict(start.accumulated_excess)
    assert dict(state.effective_yields) == TARGETS


def test_accumulates_until_threshold(engine: OptimizationEngine):
    # A earns 40 bp over target each step; threshold 100 is reached on step 3
    snapshots = make_snapshots([{"A": 540, "B": 1400, "C": 2000}] * 3)
    state = engine.initial_state()
    events = []
    totals = []
    for snap in snapshots:
        state, event = engine.step(state, snap)
        events.append(event)
        totals.append(state.total_accumulated_bp)

    assert events[0] is None and events[1] is None
    assert totals[:2] == [40, 80]
    fired = events[2]
    assert fired is not None
    assert fired.accumulated_excess_bp == 120
    assert fired.total_excess_bp == 40
    assert fired.timestamp == snapshots[2].timestamp
    assert sum(fired.allocations.values()) + fired.treasury_bp == 40
    assert totals[2] == 0


def test_effective_equals_observed_without_event(engine: OptimizationEngine):
    observed = {"A": 540, "B": 1000, "C": 2000}
    state, event = engine.step(engine.initial_state(), make_snapshot(observed))
    assert event is None
    assert dict(state.effective_yields) == observed


def test_zero_threshold_skips_steps_without_excess():
    engine = OptimizationEngine(make_config(rebalance_threshold=0))
    state, event = engine.step(engine.initial_state(), make_snapshot({"A": 100, "B": 1400, "C": 2000}))
    assert event is None
    assert state.total_accumulated_bp == 0


def test_previous_state_untouched(engine: OptimizationEngine):
    start = EngineState(accumulated_excess={"A": 10, "B": 0, "C": 0})
    engine.step(start, make_snapshot({"A": 500, "B": 900, "C": 2500}))
    assert dict(start.accumulated_excess) == {"A": 10, "B": 0, "C": 0}


def test_state_is_read_only(engine: OptimizationEngine):
    state = engine.initial_state()
    with pytest.raises(TypeError):
        state.accumulated_excess["A"] = 99


class TestErrors:
    def test_unknown_asset(self, engine: OptimizationEngine):
        with pytest.raises(ConfigMismatch):
            engine.step(engine.initial_state(), make_snapshot({**TARGETS, "D": 10}))

    def test_missing_asset(self, engine: OptimizationEngine):
        with pytest.raises(MalformedSnapshot, match="missing"):
            engine.step(engine.initial_state(), make_snapshot({"A": 500, "B": 1400}))

    def test_negative_yield(self, engine: OptimizationEngine):
        with pytest.raises(MalformedSnapshot, match="Negative"):
            engine.step(engine.initial_state(), make_snapshot({"A": -1, "B": 1400, "C": 2000}))

    def test_non_integer_yield(self, engine: OptimizationEngine):
        with pytest.raises(MalformedSnapshot):
            engine.step(engine.initial_state(), make_snapshot({"A": 500.5, "B": 1400, "C": 2000}))
