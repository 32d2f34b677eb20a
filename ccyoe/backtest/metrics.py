"""Performance metrics computed from backtest history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class PerformanceMetrics:
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
    yield_improvement_bp: Dict[str, float]
    cumulative_returns: pd.Series

    @property
    def total_return_pct(self) -> float:
        return self.total_return * 100.0

    @property
    def max_drawdown_pct(self) -> float:
        return self.max_drawdown * 100.0


def _max_drawdown(values: pd.Series) -> tuple[float, int]:
    """Return (max_drawdown, max_drawdown_duration_periods) of a wealth curve."""
    if len(values) < 2:
        return 0.0, 0

    cummax = values.cummax()
    drawdown = (values - cummax) / cummax
    max_dd = float(drawdown.min())  # most negative

    # Duration: longest streak below the running peak
    below_peak = values < cummax
    if not below_peak.any():
        return 0.0, 0

    groups = (~below_peak).cumsum()
    dd_groups = below_peak.groupby(groups)
    max_dur = int(dd_groups.sum().max()) if len(dd_groups) > 0 else 0

    return abs(max_dd), max_dur


def _total_return(returns: pd.Series) -> float:
    if returns.empty:
        return 0.0
    return float((1.0 + returns).prod() - 1.0)


def _sharpe(returns: pd.Series, periods_per_year: float, annualize: bool = True) -> float:
    """Mean over sample std of per-period returns; zero when std is zero or undefined."""
    # constant series: float mean/std noise must not read as variance
    if len(returns) < 2 or returns.nunique() < 2:
        return 0.0
    mean_ret = float(returns.mean())
    std_ret = float(returns.std())
    if not std_ret > 0:
        return 0.0
    scale = np.sqrt(periods_per_year) if annualize else 1.0
    return mean_ret / std_ret * scale


def compute_metrics(
    history_df: pd.DataFrame,
    effective_yields: pd.DataFrame,
    raw_yields: pd.DataFrame,
    periods_per_year: float = 365.0,
    annualize_sharpe: bool = True,
) -> PerformanceMetrics:
    """Compute performance metrics from backtester history.

    Expected columns in *history_df*:
    - ``portfolio_return``: per-period return with effective yields
    - ``baseline_return``: per-period return with raw observed yields
    - ``total_excess_bp``: excess over targets at each step
    - ``rebalanced``: whether an event fired at each step
    - ``treasury_bp``: treasury share of the event at each step (0 if none)

    *effective_yields* and *raw_yields* are timestamp x asset frames in bp.
    """
    if history_df.empty:
        return PerformanceMetrics(
            periods=0,
            total_return=0.0,
            baseline_total_return=0.0,
            sharpe_ratio=0.0,
            baseline_sharpe_ratio=0.0,
            max_drawdown=0.0,
            max_drawdown_duration_periods=0,
            rebalance_count=0,
            average_excess_yield_bp=0.0,
            total_treasury_bp=0,
            yield_improvement_bp={sym: 0.0 for sym in raw_yields.columns},
            cumulative_returns=pd.Series(dtype=float),
        )

    returns = history_df["portfolio_return"].astype(float)
    baseline = history_df["baseline_return"].astype(float)

    wealth = (1.0 + returns).cumprod()
    max_dd, max_dd_dur = _max_drawdown(wealth)

    improvement = (effective_yields - raw_yields).mean(axis=0)

    return PerformanceMetrics(
        periods=len(history_df),
        total_return=_total_return(returns),
        baseline_total_return=_total_return(baseline),
        sharpe_ratio=_sharpe(returns, periods_per_year, annualize_sharpe),
        baseline_sharpe_ratio=_sharpe(baseline, periods_per_year, annualize_sharpe),
        max_drawdown=max_dd,
        max_drawdown_duration_periods=max_dd_dur,
        rebalance_count=int(history_df["rebalanced"].sum()),
        average_excess_yield_bp=float(history_df["total_excess_bp"].mean()),
        total_treasury_bp=int(history_df["treasury_bp"].sum()),
        yield_improvement_bp={sym: float(v) for sym, v in improvement.items()},
        cumulative_returns=wealth - 1.0,
    )
