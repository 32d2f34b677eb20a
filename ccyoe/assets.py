from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ccyoe.errors import ConfigMismatch, MalformedSnapshot

BPS_PER_UNIT = 10_000


@dataclass(frozen=True)
class Asset:
    symbol: str
    current_yield_bp: int
    target_yield_bp: int
    holdings_weight: float

    @property
    def excess_bp(self) -> int:
        return max(0, self.current_yield_bp - self.target_yield_bp)

    @property
    def deficit_bp(self) -> int:
        return max(0, self.target_yield_bp - self.current_yield_bp)

    def is_source(self) -> bool:
        return self.excess_bp > 0

    def is_sink(self) -> bool:
        return self.deficit_bp > 0


@dataclass(frozen=True)
class YieldSnapshot:
    """Observed yield of every asset at one time step, in basis points."""

    timestamp: Any
    yields: Mapping[str, int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "yields", MappingProxyType(dict(self.yields)))

    @property
    def symbols(self) -> list[str]:
        return sorted(self.yields)

    def __getitem__(self, symbol: str) -> int:
        return self.yields[symbol]


def _is_integral(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return int(value) == value
    except (TypeError, ValueError, OverflowError):
        return False


def validate_snapshot(snapshot: YieldSnapshot, symbols: Iterable[str]) -> None:
    """Check *snapshot* covers exactly *symbols* with non-negative integer yields.

    Unknown assets raise ``ConfigMismatch``; missing assets and bad yield
    values raise ``MalformedSnapshot``.
    """
    expected = set(symbols)
    unknown = sorted(set(snapshot.yields) - expected)
    if unknown:
        raise ConfigMismatch(
            f"Snapshot at {snapshot.timestamp} has no configured target for {unknown}."
        )
    missing = sorted(expected - set(snapshot.yields))
    if missing:
        raise MalformedSnapshot(
            f"Snapshot at {snapshot.timestamp} is missing assets {missing}."
        )
    for symbol, value in snapshot.yields.items():
        if not _is_integral(value):
            raise MalformedSnapshot(
                f"Yield for {symbol} at {snapshot.timestamp} is not an integer bp value: {value!r}."
            )
        if value < 0:
            raise MalformedSnapshot(
                f"Negative yield for {symbol} at {snapshot.timestamp}: {value}."
            )
