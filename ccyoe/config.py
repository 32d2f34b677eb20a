"""Allocation config: bucket fractions, targets and weights for one run."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ccyoe.assets import Asset, YieldSnapshot, _is_integral
from ccyoe.errors import ConfigMismatch, InvalidConfig, MalformedSnapshot

logger = logging.getLogger(__name__)

UNDER_SUPPLIED = "under_supplied"
STRATEGIC_GROWTH = "strategic_growth"
PROPORTIONAL = "proportional"
TREASURY = "treasury"

# Split order; also the tie-break order for largest-remainder rounding.
BUCKETS = (UNDER_SUPPLIED, STRATEGIC_GROWTH, PROPORTIONAL, TREASURY)

FRACTION_EPSILON = 1e-9
WEIGHT_EPSILON = 1e-6


def _as_bp(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidConfig(f"{name} must be an integer bp value, got {value!r}.")
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidConfig(f"{name} must be an integer bp value, got {value!r}.") from None
    if as_int != value:
        raise InvalidConfig(f"{name} must be an integer bp value, got {value!r}.")
    if as_int < 0:
        raise InvalidConfig(f"{name} must be non-negative, got {value!r}.")
    return as_int


def _as_fraction(name: str, value: Any) -> float:
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        raise InvalidConfig(f"{name} must be a number, got {value!r}.") from None
    if not math.isfinite(as_float) or as_float < 0:
        raise InvalidConfig(f"{name} must be a finite non-negative number, got {value!r}.")
    return as_float


@dataclass(frozen=True)
class AllocationConfig:
    """Immutable policy parameters, validated once on construction."""

    target_yields: Mapping[str, int]
    under_supplied_allocation: float = 0.40
    strategic_growth_allocation: float = 0.30
    proportional_allocation: float = 0.20
    treasury_allocation: float = 0.10
    rebalance_threshold: int = 100
    strategic_weights: Optional[Mapping[str, float]] = None
    holdings_weights: Optional[Mapping[str, float]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.target_yields, Mapping) or not self.target_yields:
            raise InvalidConfig("target_yields must be a non-empty mapping of asset -> bp.")
        targets = {
            str(sym): _as_bp(f"target_yields[{sym}]", bp)
            for sym, bp in self.target_yields.items()
        }
        object.__setattr__(self, "target_yields", MappingProxyType(targets))

        for name in (
            "under_supplied_allocation",
            "strategic_growth_allocation",
            "proportional_allocation",
            "treasury_allocation",
        ):
            value = _as_fraction(name, getattr(self, name))
            if value > 1.0:
                raise InvalidConfig(f"{name} must be within [0, 1], got {value}.")
            object.__setattr__(self, name, value)

        total = sum(self.bucket_fractions().values())
        if abs(total - 1.0) > FRACTION_EPSILON:
            raise InvalidConfig(f"Allocation fractions must sum to 1.0, got {total}.")

        object.__setattr__(
            self,
            "rebalance_threshold",
            _as_bp("rebalance_threshold", self.rebalance_threshold),
        )

        if self.strategic_weights is not None:
            weights = {
                str(sym): _as_fraction(f"strategic_weights[{sym}]", w)
                for sym, w in self.strategic_weights.items()
            }
            unknown = sorted(set(weights) - set(targets))
            if unknown:
                raise InvalidConfig(f"strategic_weights reference unknown assets {unknown}.")
            if sum(weights.values()) <= 0:
                raise InvalidConfig("strategic_weights must not all be zero.")
            object.__setattr__(self, "strategic_weights", MappingProxyType(weights))

        if self.holdings_weights is None:
            equal = 1.0 / len(targets)
            holdings = {sym: equal for sym in targets}
        else:
            holdings = {
                str(sym): _as_fraction(f"holdings_weights[{sym}]", w)
                for sym, w in self.holdings_weights.items()
            }
            if set(holdings) != set(targets):
                raise InvalidConfig(
                    "holdings_weights must cover exactly the assets in target_yields: "
                    f"{sorted(holdings)} != {sorted(targets)}."
                )
            weight_sum = sum(holdings.values())
            if abs(weight_sum - 1.0) > WEIGHT_EPSILON:
                raise InvalidConfig(f"holdings_weights must sum to 1.0, got {weight_sum}.")
        object.__setattr__(self, "holdings_weights", MappingProxyType(holdings))

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def ccyoe_defaults(cls) -> AllocationConfig:
        return cls(
            target_yields={"A": 500, "B": 1400, "C": 2000},
            holdings_weights={"A": 0.5, "B": 0.3, "C": 0.2},
        )

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> AllocationConfig:
        """Build a config from a plain mapping, ignoring unrecognized keys."""
        known = {f.name for f in fields(cls)}
        ignored = sorted(set(options) - known)
        if ignored:
            logger.debug("Ignoring unknown allocation options: %s", ignored)
        if "target_yields" not in options:
            raise InvalidConfig("Missing required option 'target_yields'.")
        return cls(**{k: v for k, v in options.items() if k in known})

    def with_overrides(self, **changes: Any) -> AllocationConfig:
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def symbols(self) -> List[str]:
        return sorted(self.target_yields)

    def bucket_fractions(self) -> Dict[str, float]:
        return {
            UNDER_SUPPLIED: self.under_supplied_allocation,
            STRATEGIC_GROWTH: self.strategic_growth_allocation,
            PROPORTIONAL: self.proportional_allocation,
            TREASURY: self.treasury_allocation,
        }

    def target_for(self, symbol: str) -> int:
        try:
            return self.target_yields[symbol]
        except KeyError:
            raise ConfigMismatch(f"No target yield configured for asset {symbol!r}.") from None

    def assets_for(self, snapshot: YieldSnapshot) -> List[Asset]:
        """Combine *snapshot* yields with configured targets and weights.

        Yields must be non-negative whole bp values; anything else raises
        ``MalformedSnapshot`` instead of being truncated.
        """
        assets = []
        for sym in snapshot.symbols:
            target = self.target_for(sym)
            value = snapshot.yields[sym]
            if not _is_integral(value) or value < 0:
                raise MalformedSnapshot(
                    f"Yield for {sym} at {snapshot.timestamp} is not a non-negative "
                    f"integer bp value: {value!r}."
                )
            assets.append(
                Asset(
                    symbol=sym,
                    current_yield_bp=int(value),
                    target_yield_bp=target,
                    holdings_weight=self.holdings_weights[sym],
                )
            )
        return assets

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_yields": dict(self.target_yields),
            "under_supplied_allocation": self.under_supplied_allocation,
            "strategic_growth_allocation": self.strategic_growth_allocation,
            "proportional_allocation": self.proportional_allocation,
            "treasury_allocation": self.treasury_allocation,
            "rebalance_threshold": self.rebalance_threshold,
            "strategic_weights": (
                dict(self.strategic_weights) if self.strategic_weights is not None else None
            ),
            "holdings_weights": dict(self.holdings_weights),
        }


def load_config(path: str | Path) -> AllocationConfig:
    """Read an ``AllocationConfig`` from a JSON file."""
    path = Path(path)
    with path.open() as fh:
        options = json.load(fh)
    if not isinstance(options, dict):
        raise InvalidConfig(f"Config file {path} must contain a JSON object.")
    logger.info("Loaded allocation config from %s", path)
    return AllocationConfig.from_dict(options)
