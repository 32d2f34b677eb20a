"""Backtester: replays the optimization engine over historical snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from ccyoe.assets import BPS_PER_UNIT, YieldSnapshot
from ccyoe.backtest.metrics import compute_metrics
from ccyoe.backtest.results import BacktestResult
from ccyoe.config import AllocationConfig
from ccyoe.engine import OptimizationEngine, RebalanceEvent
from ccyoe.errors import UnorderedInput

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "portfolio_return",
    "baseline_return",
    "total_excess_bp",
    "accumulated_excess_bp",
    "rebalanced",
    "treasury_bp",
]


@dataclass
class BacktestConfig:
    periods_per_year: float = 365.0
    annualize_sharpe: bool = True


class Backtester:
    def __init__(self, config: BacktestConfig | None = None) -> None:
        self.config = config or BacktestConfig()

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def run(
        self,
        snapshots: Iterable[YieldSnapshot],
        allocation_config: AllocationConfig,
    ) -> BacktestResult:
        """Run the backtest over *snapshots*, which must be in strictly
        increasing timestamp order.

        Any malformed snapshot, unordered timestamp or unconfigured asset
        aborts the whole run; no partial result is returned.
        """
        engine = OptimizationEngine(allocation_config)
        state = engine.initial_state()
        symbols = allocation_config.symbols

        records: List[Dict[str, Any]] = []
        effective_rows: List[Dict[str, int]] = []
        raw_rows: List[Dict[str, int]] = []
        timestamps: List[Any] = []
        events: List[RebalanceEvent] = []

        previous = None
        for snapshot in snapshots:
            self._check_order(previous, snapshot)
            previous = snapshot

            state, event = engine.step(state, snapshot)

            raw = {sym: int(snapshot.yields[sym]) for sym in symbols}
            effective = {sym: state.effective_yields[sym] for sym in symbols}
            if event is not None:
                events.append(event)

            timestamps.append(snapshot.timestamp)
            raw_rows.append(raw)
            effective_rows.append(effective)
            records.append(self._record(
                snapshot.timestamp,
                self._period_return(effective, allocation_config),
                self._period_return(raw, allocation_config),
                sum(max(0, raw[sym] - allocation_config.target_yields[sym]) for sym in symbols),
                state.total_accumulated_bp,
                event,
            ))

        history = pd.DataFrame(records, columns=["timestamp"] + HISTORY_COLUMNS)
        history = history.set_index("timestamp")
        index = pd.Index(timestamps, name="timestamp")
        effective_yields = pd.DataFrame(effective_rows, index=index, columns=symbols)
        raw_yields = pd.DataFrame(raw_rows, index=index, columns=symbols)

        metrics = compute_metrics(
            history,
            effective_yields,
            raw_yields,
            periods_per_year=self.config.periods_per_year,
            annualize_sharpe=self.config.annualize_sharpe,
        )
        logger.info(
            "Backtest complete: %d periods, %d rebalances, total return %.6f",
            metrics.periods,
            metrics.rebalance_count,
            metrics.total_return,
        )

        return BacktestResult(
            returns=history["portfolio_return"].astype(float),
            baseline_returns=history["baseline_return"].astype(float),
            events=tuple(events),
            history=history,
            effective_yields=effective_yields,
            raw_yields=raw_yields,
            metrics=metrics,
            allocation_config=allocation_config,
            backtest_config=self.config,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_order(previous: YieldSnapshot | None, snapshot: YieldSnapshot) -> None:
        if previous is None:
            return
        try:
            ordered = snapshot.timestamp > previous.timestamp
        except TypeError as exc:
            raise UnorderedInput(
                f"Cannot order timestamps {previous.timestamp!r} and {snapshot.timestamp!r}."
            ) from exc
        if not ordered:
            raise UnorderedInput(
                f"Snapshot timestamp {snapshot.timestamp} is not after {previous.timestamp}."
            )

    def _period_return(self, yields_bp: Mapping[str, int], config: AllocationConfig) -> float:
        """Holdings-weighted annual yield scaled down to one period."""
        weighted_bp = sum(
            config.holdings_weights[sym] * bp for sym, bp in yields_bp.items()
        )
        return weighted_bp / BPS_PER_UNIT / self.config.periods_per_year

    @staticmethod
    def _record(
        timestamp: Any,
        portfolio_return: float,
        baseline_return: float,
        total_excess_bp: int,
        accumulated_excess_bp: int,
        event: RebalanceEvent | None,
    ) -> Dict[str, Any]:
        return {
            "timestamp": timestamp,
            "portfolio_return": portfolio_return,
            "baseline_return": baseline_return,
            "total_excess_bp": total_excess_bp,
            "accumulated_excess_bp": accumulated_excess_bp,
            "rebalanced": event is not None,
            "treasury_bp": event.treasury_bp if event is not None else 0,
        }
