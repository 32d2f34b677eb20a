"""Allocation policy: split aggregate excess yield into buckets and assets.

All amounts are integer basis points.  Every split goes through
``largest_remainder_split`` so the parts always add back up to the whole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Dict, Mapping

from ccyoe.assets import YieldSnapshot
from ccyoe.config import (
    BUCKETS,
    PROPORTIONAL,
    STRATEGIC_GROWTH,
    TREASURY,
    UNDER_SUPPLIED,
    AllocationConfig,
)


def _exact(weight: float | int | Fraction) -> Fraction:
    if isinstance(weight, (int, Fraction)):
        return Fraction(weight)
    # repr round-trips the float, so 0.3 becomes 3/10 rather than its binary expansion
    return Fraction(repr(float(weight)))


def largest_remainder_split(total: int, weights: Mapping[str, float | int | Fraction]) -> Dict[str, int]:
    """Split *total* units across *weights* so the parts sum exactly to *total*.

    Each key gets ``floor(total * share)``; the leftover units go one at a
    time to the largest fractional remainders.  Ties go to the key that
    comes first in *weights*.
    """
    exact = {key: _exact(w) for key, w in weights.items()}
    weight_sum = sum(exact.values(), Fraction(0))
    if weight_sum <= 0:
        raise ValueError("Cannot split over weights that sum to zero.")
    if total == 0:
        return {key: 0 for key in exact}

    quotas = {key: total * w / weight_sum for key, w in exact.items()}
    parts = {key: q.numerator // q.denominator for key, q in quotas.items()}
    leftover = total - sum(parts.values())

    position = {key: i for i, key in enumerate(exact)}
    ranked = sorted(exact, key=lambda key: (parts[key] - quotas[key], position[key]))
    for key in ranked[:leftover]:
        parts[key] += 1
    return parts


@dataclass(frozen=True)
class ExcessBreakdown:
    """First pass of the policy: per-asset excess and deficit."""

    excess: Mapping[str, int]
    deficit: Mapping[str, int]

    @property
    def total_excess(self) -> int:
        return sum(self.excess.values())

    @property
    def sources(self) -> list[str]:
        return [sym for sym, bp in self.excess.items() if bp > 0]

    @property
    def sinks(self) -> list[str]:
        return [sym for sym, bp in self.deficit.items() if bp > 0]


@dataclass(frozen=True)
class AllocationOutcome:
    total_excess: int
    excess: Mapping[str, int]
    deficit: Mapping[str, int]
    buckets: Mapping[str, int] = field(default_factory=dict)
    allocations: Mapping[str, int] = field(default_factory=dict)
    treasury: int = 0
    redirected_bp: int = 0

    def __post_init__(self) -> None:
        for name in ("excess", "deficit", "buckets", "allocations"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def is_empty(self) -> bool:
        return self.total_excess == 0

    def distributed_total(self) -> int:
        return sum(self.allocations.values()) + self.treasury


def compute_excess(snapshot: YieldSnapshot, config: AllocationConfig) -> ExcessBreakdown:
    """Per-asset excess and deficit against configured targets.

    Raises ``ConfigMismatch`` for any asset without a target.
    """
    excess: Dict[str, int] = {}
    deficit: Dict[str, int] = {}
    for asset in config.assets_for(snapshot):
        excess[asset.symbol] = asset.excess_bp
        deficit[asset.symbol] = asset.deficit_bp
    return ExcessBreakdown(excess=excess, deficit=deficit)


def _strategic_weights(symbols: list[str], config: AllocationConfig) -> Dict[str, float]:
    if config.strategic_weights is None:
        return {sym: 1 for sym in symbols}
    weights = {sym: config.strategic_weights.get(sym, 0.0) for sym in symbols}
    if sum(weights.values()) <= 0:
        return {sym: 1 for sym in symbols}
    return weights


def _holdings_weights(symbols: list[str], config: AllocationConfig) -> Dict[str, float]:
    weights = {sym: config.holdings_weights[sym] for sym in symbols}
    if sum(weights.values()) <= 0:
        return {sym: 1 for sym in symbols}
    return weights


def compute_allocation(snapshot: YieldSnapshot, config: AllocationConfig) -> AllocationOutcome:
    """Redistribute the snapshot's aggregate excess yield.

    Invariant: ``sum(outcome.allocations.values()) + outcome.treasury ==
    outcome.total_excess``.
    """
    breakdown = compute_excess(snapshot, config)
    total_excess = breakdown.total_excess
    if total_excess == 0:
        return AllocationOutcome(
            total_excess=0, excess=breakdown.excess, deficit=breakdown.deficit
        )

    symbols = snapshot.symbols
    buckets = largest_remainder_split(total_excess, config.bucket_fractions())

    redirected = 0
    sinks = breakdown.sinks
    if not sinks and buckets[UNDER_SUPPLIED] > 0:
        redirected = buckets[UNDER_SUPPLIED]
        buckets[PROPORTIONAL] += redirected
        buckets[UNDER_SUPPLIED] = 0

    allocations = {sym: 0 for sym in symbols}
    shares = []
    if sinks and buckets[UNDER_SUPPLIED] > 0:
        shares.append(largest_remainder_split(
            buckets[UNDER_SUPPLIED], {sym: breakdown.deficit[sym] for sym in sinks}
        ))
    shares.append(largest_remainder_split(
        buckets[STRATEGIC_GROWTH], _strategic_weights(symbols, config)
    ))
    shares.append(largest_remainder_split(
        buckets[PROPORTIONAL], _holdings_weights(symbols, config)
    ))
    for share in shares:
        for sym, bp in share.items():
            allocations[sym] += bp

    return AllocationOutcome(
        total_excess=total_excess,
        excess=breakdown.excess,
        deficit=breakdown.deficit,
        buckets={name: buckets[name] for name in BUCKETS},
        allocations=allocations,
        treasury=buckets[TREASURY],
        redirected_bp=redirected,
    )
