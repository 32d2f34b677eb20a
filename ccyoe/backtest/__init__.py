"""Backtesting framework for cross-collateral yield redistribution."""

from ccyoe.backtest.metrics import PerformanceMetrics, compute_metrics
from ccyoe.backtest.report import PerformanceReport
from ccyoe.backtest.results import BacktestResult
from ccyoe.backtest.engine import BacktestConfig, Backtester
from ccyoe.backtest.data import load_snapshots, snapshots_from_frame
from ccyoe.backtest.optimizer import OptimizationResult, grid_search

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "Backtester",
    "OptimizationResult",
    "PerformanceMetrics",
    "PerformanceReport",
    "compute_metrics",
    "grid_search",
    "load_snapshots",
    "snapshots_from_frame",
]
