"""Rebalance trigger: fire once accumulated excess reaches the threshold."""

from __future__ import annotations

from ccyoe.config import AllocationConfig


def should_rebalance(accumulated_excess_bp: int, config: AllocationConfig) -> bool:
    return accumulated_excess_bp >= config.rebalance_threshold
