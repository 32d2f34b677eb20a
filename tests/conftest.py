"""Shared test helpers for the yield optimization engine tests."""

from typing import Any, Dict, List, Optional

import pandas as pd

from ccyoe.assets import YieldSnapshot
from ccyoe.config import AllocationConfig

TARGETS = {"A": 500, "B": 1400, "C": 2000}
HOLDINGS = {"A": 0.5, "B": 0.3, "C": 0.2}


def make_config(**overrides: Any) -> AllocationConfig:
    """Three-asset config from the reference scenario, optionally overridden."""
    options: Dict[str, Any] = {
        "target_yields": dict(TARGETS),
        "holdings_weights": dict(HOLDINGS),
        "under_supplied_allocation": 0.40,
        "strategic_growth_allocation": 0.30,
        "proportional_allocation": 0.20,
        "treasury_allocation": 0.10,
        "rebalance_threshold": 100,
    }
    options.update(overrides)
    return AllocationConfig(**options)


def make_snapshot(
    yields: Optional[Dict[str, int]] = None,
    timestamp: Any = None,
) -> YieldSnapshot:
    return YieldSnapshot(
        timestamp=timestamp if timestamp is not None else pd.Timestamp("2024-01-01", tz="UTC"),
        yields=yields if yields is not None else dict(TARGETS),
    )


def make_snapshots(
    rows: List[Dict[str, int]],
    start: str = "2024-01-01",
    freq: str = "D",
) -> List[YieldSnapshot]:
    """One snapshot per row, at consecutive timestamps."""
    dates = pd.date_range(start, periods=len(rows), freq=freq, tz="UTC")
    return [YieldSnapshot(timestamp=ts, yields=row) for ts, row in zip(dates, rows)]


def make_yield_frame(
    n_periods: int = 10,
    yields: Optional[Dict[str, float]] = None,
    freq: str = "D",
) -> pd.DataFrame:
    """Constant timestamp x asset yield frame."""
    yields = yields or dict(TARGETS)
    dates = pd.date_range("2024-01-01", periods=n_periods, freq=freq, tz="UTC")
    return pd.DataFrame({sym: [bp] * n_periods for sym, bp in yields.items()}, index=dates)
