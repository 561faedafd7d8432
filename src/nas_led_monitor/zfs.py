from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import ProbeUnavailable
from .models import PoolInfo
from .probe import Probe
from .rules import classify_pool, pool_operations

_LOGGER = logging.getLogger(__name__)


def has_zpool(probe: Probe) -> bool:
    return probe.has_command("zpool")


def list_pools(probe: Probe) -> List[str]:
    proc = probe.run(["zpool", "list", "-H", "-o", "name"])
    if proc.exit_code != 0:
        raise ProbeUnavailable("zpool list failed", exit_code=proc.exit_code)
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def pool_health_token(probe: Probe, pool: str) -> str:
    proc = probe.run(["zpool", "list", "-H", "-o", "health", pool])
    return proc.stdout.strip() if proc.exit_code == 0 else ""


def pool_status(probe: Probe, pool: str) -> str:
    proc = probe.run(["zpool", "status", pool])
    return proc.stdout if proc.exit_code == 0 else ""


def pools_to_check(probe: Probe, configured: Sequence[str] = ()) -> List[str]:
    if configured:
        return list(configured)
    return list_pools(probe)


def get_pool_info(probe: Probe, pool: str, status: Optional[str] = None) -> PoolInfo:
    token = pool_health_token(probe, pool)
    if status is None:
        status = pool_status(probe, pool)
    result = classify_pool(token, status)
    scrub_active, resilver_active, scrub_errors = pool_operations(status)
    _LOGGER.debug("Pool %s: %s", pool, result.reason)
    return PoolInfo(
        name=pool,
        health=result.state,
        scrub_active=scrub_active,
        resilver_active=resilver_active,
        scrub_errors=scrub_errors,
    )


def pool_statuses(probe: Probe, pools: Optional[Sequence[str]] = None) -> Dict[str, str]:
    names = pools_to_check(probe, pools or ())
    return {name: pool_status(probe, name) for name in names}


def member_statuses(probe: Probe, known: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Status text of every imported pool, reusing texts already fetched.

    Pool membership of a disk is looked up here regardless of the configured
    pool list, so a member of an unmonitored pool is still reported.
    """
    known = known or {}
    return {
        name: known[name] if name in known else pool_status(probe, name)
        for name in list_pools(probe)
    }
