"""Optimization engine: one policy/trigger evaluation per time step."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ccyoe.assets import YieldSnapshot, validate_snapshot
from ccyoe.config import AllocationConfig
from ccyoe.errors import InvalidConfig
from ccyoe.policy import compute_allocation, compute_excess
from ccyoe.trigger import should_rebalance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    """Per-asset excess accumulated since the last event, and effective yields."""

    accumulated_excess: Mapping[str, int] = field(default_factory=dict)
    effective_yields: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "accumulated_excess", MappingProxyType(dict(self.accumulated_excess)))
        object.__setattr__(self, "effective_yields", MappingProxyType(dict(self.effective_yields)))

    @property
    def total_accumulated_bp(self) -> int:
        return sum(self.accumulated_excess.values())


@dataclass(frozen=True)
class RebalanceEvent:
    """Instruction record for one redistribution; never mutated."""

    timestamp: Any
    total_excess_bp: int
    accumulated_excess_bp: int
    buckets: Mapping[str, int]
    allocations: Mapping[str, int]
    treasury_bp: int
    redirected_bp: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "buckets", MappingProxyType(dict(self.buckets)))
        object.__setattr__(self, "allocations", MappingProxyType(dict(self.allocations)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "total_excess_bp": self.total_excess_bp,
            "accumulated_excess_bp": self.accumulated_excess_bp,
            "buckets": dict(self.buckets),
            "allocations": dict(self.allocations),
            "treasury_bp": self.treasury_bp,
            "redirected_bp": self.redirected_bp,
        }


class OptimizationEngine:
    def __init__(self, config: AllocationConfig) -> None:
        if not isinstance(config, AllocationConfig):
            raise InvalidConfig(
                f"OptimizationEngine requires an AllocationConfig, got {type(config).__name__}."
            )
        self.config = config

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def initial_state(self) -> EngineState:
        return EngineState(accumulated_excess={sym: 0 for sym in self.config.symbols})

    def step(
        self,
        state: EngineState,
        snapshot: YieldSnapshot,
    ) -> Tuple[EngineState, Optional[RebalanceEvent]]:
        """Advance one time step.

        Adds this step's excess to the accumulator.  When the accumulated
        total reaches the rebalance threshold (and there is excess to move),
        runs the full allocation, applies it to effective yields, resets the
        accumulator and returns the event.  Otherwise effective yields are
        the observed yields and no event is returned.
        """
        validate_snapshot(snapshot, self.config.symbols)
        breakdown = compute_excess(snapshot, self.config)

        accumulated = dict(state.accumulated_excess)
        for sym, bp in breakdown.excess.items():
            accumulated[sym] = accumulated.get(sym, 0) + bp
        accumulated_total = sum(accumulated.values())

        observed = {sym: int(bp) for sym, bp in snapshot.yields.items()}

        if breakdown.total_excess == 0 or not should_rebalance(accumulated_total, self.config):
            logger.debug(
                "No rebalance at %s: step excess %d bp, accumulated %d bp (threshold %d)",
                snapshot.timestamp,
                breakdown.total_excess,
                accumulated_total,
                self.config.rebalance_threshold,
            )
            return EngineState(accumulated_excess=accumulated, effective_yields=observed), None

        outcome = compute_allocation(snapshot, self.config)
        effective = {
            sym: min(bp, self.config.target_yields[sym]) + outcome.allocations[sym]
            for sym, bp in observed.items()
        }
        event = RebalanceEvent(
            timestamp=snapshot.timestamp,
            total_excess_bp=outcome.total_excess,
            accumulated_excess_bp=accumulated_total,
            buckets=outcome.buckets,
            allocations=outcome.allocations,
            treasury_bp=outcome.treasury,
            redirected_bp=outcome.redirected_bp,
        )
        logger.info(
            "Rebalance at %s: %d bp redistributed (%d bp to treasury)",
            snapshot.timestamp,
            outcome.total_excess,
            outcome.treasury,
        )
        new_state = EngineState(
            accumulated_excess={sym: 0 for sym in accumulated},
            effective_yields=effective,
        )
        return new_state, event
