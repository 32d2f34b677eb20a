"""Read-only performance report over a completed backtest."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping

import pandas as pd

if TYPE_CHECKING:
    from ccyoe.backtest.results import BacktestResult


@dataclass(frozen=True)
class PerformanceReport:
    periods: int
    total_return: float
    baseline_total_return: float
    sharpe_ratio: float
    baseline_sharpe_ratio: float
    max_drawdown: float
    max_drawdown_duration_periods: int
    rebalance_count: int
    average_excess_yield_bp: float
    total_treasury_bp: int
    yield_improvement_bp: Mapping[str, float]

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "yield_improvement_bp", MappingProxyType(dict(self.yield_improvement_bp))
        )

    @classmethod
    def from_result(cls, result: BacktestResult) -> PerformanceReport:
        m = result.metrics
        return cls(
            periods=m.periods,
            total_return=m.total_return,
            baseline_total_return=m.baseline_total_return,
            sharpe_ratio=m.sharpe_ratio,
            baseline_sharpe_ratio=m.baseline_sharpe_ratio,
            max_drawdown=m.max_drawdown,
            max_drawdown_duration_periods=m.max_drawdown_duration_periods,
            rebalance_count=m.rebalance_count,
            average_excess_yield_bp=m.average_excess_yield_bp,
            total_treasury_bp=m.total_treasury_bp,
            yield_improvement_bp=m.yield_improvement_bp,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "periods": self.periods,
            "total_return": self.total_return,
            "baseline_total_return": self.baseline_total_return,
            "sharpe_ratio": self.sharpe_ratio,
            "baseline_sharpe_ratio": self.baseline_sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_duration_periods": self.max_drawdown_duration_periods,
            "rebalance_count": self.rebalance_count,
            "average_excess_yield_bp": self.average_excess_yield_bp,
            "total_treasury_bp": self.total_treasury_bp,
            "yield_improvement_bp": dict(self.yield_improvement_bp),
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-asset yield improvement table, sorted by asset."""
        frame = pd.DataFrame(
            {"yield_improvement_bp": pd.Series(dict(self.yield_improvement_bp), dtype=float)}
        )
        frame.index.name = "asset"
        return frame.sort_index()

    def summary(self) -> str:
        lines = [
            "=== CCYOE Backtest Summary ===",
            f"Periods:           {self.periods}",
            f"Return:            {self.total_return * 100.0:+.4f}%",
            f"Baseline Return:   {self.baseline_total_return * 100.0:+.4f}%",
            f"Sharpe:            {self.sharpe_ratio:.3f}",
            f"Baseline Sharpe:   {self.baseline_sharpe_ratio:.3f}",
            f"Max Drawdown:      {self.max_drawdown * 100.0:.2f}%  ({self.max_drawdown_duration_periods} periods)",
            f"Rebalances:        {self.rebalance_count}",
            f"Avg Excess Yield:  {self.average_excess_yield_bp:.2f} bp",
            f"Treasury Total:    {self.total_treasury_bp} bp",
        ]
        for sym in sorted(self.yield_improvement_bp):
            lines.append(f"  {sym:<16} {self.yield_improvement_bp[sym]:+.2f} bp")
        return "\n".join(lines)
