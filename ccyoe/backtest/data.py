"""Yield snapshot loading from pandas frames and CSV files."""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from ccyoe.assets import YieldSnapshot
from ccyoe.errors import MalformedSnapshot

logger = logging.getLogger(__name__)

UNITS = ("bp", "pct")


def _to_bp(value: float, units: str, asset: str, timestamp) -> int:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        raise MalformedSnapshot(f"Missing yield for {asset} at {timestamp}.")
    if isinstance(value, float) and math.isinf(value):
        raise MalformedSnapshot(f"Infinite yield for {asset} at {timestamp}.")
    if units == "pct":
        # 5.12% -> 512 bp; halves round up, 0.145% -> 15 bp
        bp = Decimal(repr(float(value))).scaleb(2)
        return int(bp.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    as_int = int(value)
    if as_int != value:
        raise MalformedSnapshot(
            f"Yield for {asset} at {timestamp} is not an integer bp value: {value!r}."
        )
    return as_int


def snapshots_from_frame(
    frame: pd.DataFrame,
    units: str = "bp",
    assets: Optional[Sequence[str]] = None,
) -> List[YieldSnapshot]:
    """Convert a timestamp x asset frame into snapshots, one per row.

    Rows are kept in frame order; ordering is checked by the backtester.
    *units* is ``"bp"`` (values already in basis points) or ``"pct"``
    (percent APY, rounded to the nearest basis point).
    """
    if units not in UNITS:
        raise ValueError(f"units must be one of {UNITS}, got {units!r}")

    columns = list(assets) if assets is not None else list(frame.columns)
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise MalformedSnapshot(f"Yield data has no column for assets {missing}.")

    snapshots: List[YieldSnapshot] = []
    for timestamp, row in frame[columns].iterrows():
        yields = {
            str(asset): _to_bp(row[asset], units, asset, timestamp)
            for asset in columns
        }
        snapshots.append(YieldSnapshot(timestamp=timestamp, yields=yields))
    return snapshots


def load_snapshots(
    path: str | Path,
    units: str = "bp",
    assets: Optional[Sequence[str]] = None,
) -> List[YieldSnapshot]:
    """Read yield history from a CSV with a timestamp first column."""
    frame = pd.read_csv(path, index_col=0, parse_dates=True)
    snapshots = snapshots_from_frame(frame, units=units, assets=assets)
    logger.info("Loaded %d yield snapshots from %s", len(snapshots), path)
    return snapshots
