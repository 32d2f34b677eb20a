"""BacktestResult container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import pandas as pd

from ccyoe.backtest.metrics import PerformanceMetrics
from ccyoe.backtest.report import PerformanceReport
from ccyoe.config import AllocationConfig
from ccyoe.engine import RebalanceEvent


@dataclass(frozen=True)
class BacktestResult:
    returns: pd.Series
    baseline_returns: pd.Series
    events: Tuple[RebalanceEvent, ...]
    history: pd.DataFrame
    effective_yields: pd.DataFrame
    raw_yields: pd.DataFrame
    metrics: PerformanceMetrics
    allocation_config: AllocationConfig
    backtest_config: Any  # BacktestConfig — avoid circular import

    def report(self) -> PerformanceReport:
        return PerformanceReport.from_result(self)

    def summary(self) -> str:
        return self.report().summary()
