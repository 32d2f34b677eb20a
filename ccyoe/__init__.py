"""Cross-collateral yield optimization engine."""

from ccyoe.errors import (
    CCYOEError,
    ConfigMismatch,
    InvalidConfig,
    MalformedSnapshot,
    UnorderedInput,
)
from ccyoe.assets import Asset, YieldSnapshot, validate_snapshot
from ccyoe.config import AllocationConfig, load_config
from ccyoe.policy import AllocationOutcome, compute_allocation, largest_remainder_split
from ccyoe.trigger import should_rebalance
from ccyoe.engine import EngineState, OptimizationEngine, RebalanceEvent

__all__ = [
    "AllocationConfig",
    "AllocationOutcome",
    "Asset",
    "CCYOEError",
    "ConfigMismatch",
    "EngineState",
    "InvalidConfig",
    "MalformedSnapshot",
    "OptimizationEngine",
    "RebalanceEvent",
    "UnorderedInput",
    "YieldSnapshot",
    "compute_allocation",
    "largest_remainder_split",
    "load_config",
    "should_rebalance",
    "validate_snapshot",
]
