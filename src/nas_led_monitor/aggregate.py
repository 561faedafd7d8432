"""Combine per-entity health states into one state per indicator.

Severity is read from explicit rank tables rather than enum values because
the pool operation states sit between ONLINE and DEGRADED.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Mapping, TypeVar

from .models import Classification, PoolHealth, PoolInfo, SmartStatus

S = TypeVar("S", bound=Enum)


POOL_RANK: Dict[PoolHealth, int] = {
    PoolHealth.ONLINE: 0,
    PoolHealth.SCRUB_ERRORS: 1,
    PoolHealth.SCRUB_ACTIVE: 1,
    PoolHealth.RESILVER_ACTIVE: 1,
    PoolHealth.UNAVAIL: 2,
    PoolHealth.UNKNOWN: 2,
    PoolHealth.DEGRADED: 3,
    PoolHealth.FAULTED: 4,
}

SMART_RANK: Dict[SmartStatus, int] = {
    SmartStatus.HEALTHY: 0,
    SmartStatus.DEVICE_NOT_FOUND: 1,
    SmartStatus.UNAVAILABLE: 1,
    SmartStatus.WARNING: 2,
    SmartStatus.CRITICAL: 3,
}


def worst(states: Iterable[S], rank: Mapping[S, int], best: S) -> S:
    """Return the highest ranked state; ties keep the first one seen."""
    result = best
    for state in states:
        if rank[state] > rank[result]:
            result = state
    return result


def aggregate(states: Iterable[PoolHealth]) -> PoolHealth:
    """Overall pool-bank state.

    FAULTED is final once seen. UNKNOWN is reported as UNAVAIL, and an empty
    input is UNAVAIL because there is nothing healthy to show.
    """
    seen = False
    overall = PoolHealth.ONLINE
    for state in states:
        seen = True
        if overall is PoolHealth.FAULTED:
            break
        if state is PoolHealth.UNKNOWN:
            state = PoolHealth.UNAVAIL
        if POOL_RANK[state] > POOL_RANK[overall]:
            overall = state
    if not seen:
        return PoolHealth.UNAVAIL
    return overall


def summarize_operations(pools: Iterable[PoolInfo]) -> Classification:
    scrub = resilver = errors = False
    for info in pools:
        scrub = scrub or info.scrub_active
        resilver = resilver or info.resilver_active
        errors = errors or info.scrub_errors
    if resilver:
        return Classification(PoolHealth.RESILVER_ACTIVE, "Resilver in progress")
    if scrub:
        return Classification(PoolHealth.SCRUB_ACTIVE, "Scrub in progress")
    if errors:
        return Classification(PoolHealth.SCRUB_ERRORS, "Recent scrub found errors")
    return Classification(PoolHealth.ONLINE, "Normal")
