"""Tests for ccyoe.backtest.report — read-only aggregation over a result."""

from __future__ import annotations

import pandas as pd
import pytest

from ccyoe.backtest.engine import Backtester
from ccyoe.backtest.report import PerformanceReport
from tests.conftest import TARGETS, make_config, make_snapshots


@pytest.fixture
def result():
    rows = [dict(TARGETS), {"A": 500, "B": 900, "C": 2500}, {"A": 560, "B": 1400, "C": 2000}]
    return Backtester().run(make_snapshots(rows), make_config())


def test_report_mirrors_metrics(result):
    report = PerformanceReport.from_result(result)
    m = result.metrics

    assert report.periods == 3
    assert report.total_return == m.total_return
    assert report.sharpe_ratio == m.sharpe_ratio
    assert report.max_drawdown == m.max_drawdown
    assert report.rebalance_count == 1
    assert report.average_excess_yield_bp == pytest.approx((0 + 500 + 60) / 3)
    assert dict(report.yield_improvement_bp) == m.yield_improvement_bp


def test_report_is_idempotent(result):
    first = result.report()
    second = result.report()

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert first.summary() == second.summary()
    pd.testing.assert_frame_equal(first.to_frame(), second.to_frame())


def test_report_does_not_touch_result(result):
    before = result.history.copy()
    result.report().to_dict()["yield_improvement_bp"]["A"] = 1e9
    pd.testing.assert_frame_equal(result.history, before)
    assert result.metrics.yield_improvement_bp["A"] != 1e9


def test_report_is_read_only(result):
    report = result.report()
    with pytest.raises(AttributeError):
        report.rebalance_count = 99
    with pytest.raises(TypeError):
        report.yield_improvement_bp["A"] = 0.0


def test_to_dict_keys(result):
    assert set(result.report().to_dict()) == {
        "periods",
        "total_return",
        "baseline_total_return",
        "sharpe_ratio",
        "baseline_sharpe_ratio",
        "max_drawdown",
        "max_drawdown_duration_periods",
        "rebalance_count",
        "average_excess_yield_bp",
        "total_treasury_bp",
        "yield_improvement_bp",
    }


def test_to_frame(result):
    frame = result.report().to_frame()
    assert list(frame.index) == ["A", "B", "C"]
    assert frame.index.name == "asset"
    assert frame.loc["B", "yield_improvement_bp"] == pytest.approx(280.0 / 3)


def test_summary_text(result):
    text = result.summary()
    assert text.startswith("=== CCYOE Backtest Summary ===")
    assert "Rebalances:        1" in text
    for sym in ("A", "B", "C"):
        assert f"  {sym} " in text


def test_report_on_empty_result():
    report = Backtester().run([], make_config()).report()
    assert report.periods == 0
    assert report.rebalance_count == 0
    assert "Periods:           0" in report.summary()
