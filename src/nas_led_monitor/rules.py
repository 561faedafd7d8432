from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .aggregate import SMART_RANK, worst
from .models import (
    Classification,
    NetworkInterface,
    NetworkStatus,
    PoolDiskStatus,
    PoolHealth,
    SmartStatus,
)


def classify_network(
    interfaces: Sequence[NetworkInterface], connectivity_ok: Optional[bool]
) -> Classification:
    if not interfaces:
        return Classification(NetworkStatus.UNKNOWN, "No network interfaces found")

    up = [iface for iface in interfaces if iface.is_up]
    bridge_up = any(iface.is_bridge for iface in up)
    physical_up = any(not iface.is_bridge for iface in up)

    if bridge_up:
        names = ", ".join(iface.name for iface in up if iface.is_bridge)
        return Classification(NetworkStatus.HEALTHY, f"Bridge up ({names})")
    if physical_up and connectivity_ok:
        return Classification(NetworkStatus.HEALTHY, "Physical interface up with connectivity")
    if up:
        return Classification(NetworkStatus.WARNING, "Interfaces up but connectivity test failed")
    return Classification(NetworkStatus.CRITICAL, "All interfaces down")


# smartctl exit status bits, see smartctl(8) "RETURN VALUES".
# None marks bits that carry no health verdict.
SMART_EXIT_BITS: Tuple[Tuple[int, str, Optional[SmartStatus]], ...] = (
    (0, "command line did not parse", SmartStatus.UNAVAILABLE),
    (1, "device open failed", SmartStatus.UNAVAILABLE),
    (2, "device command failed or checksum error", SmartStatus.UNAVAILABLE),
    (3, "disk failing", SmartStatus.CRITICAL),
    (4, "pre-fail attributes at or below threshold", SmartStatus.CRITICAL),
    (5, "usage attributes were at or below threshold in the past", None),
    (6, "device error log contains errors", SmartStatus.WARNING),
    (7, "self-test log contains errors", SmartStatus.WARNING),
)


def classify_smart_exit_code(exit_code: int) -> Classification:
    hits = [(meaning, state) for bit, meaning, state in SMART_EXIT_BITS if exit_code & (1 << bit)]
    reasons: List[str] = [meaning for meaning, _ in hits]
    state = worst((s for _, s in hits if s is not None), SMART_RANK, SmartStatus.HEALTHY)
    return Classification(state, "; ".join(reasons) if reasons else "exit status clear")


def smart_health_text(output: str) -> Optional[str]:
    if "PASSED" in output:
        return "PASSED"
    if "FAILED" in output:
        return "FAILED"
    match = re.search(r"SMART Health Status:\s*(\S+)", output)
    if match:
        return match.group(1)
    return None


def classify_smart(device_present: bool, exit_code: int, output: str) -> Classification:
    if not device_present:
        return Classification(SmartStatus.DEVICE_NOT_FOUND, "Device not found")
    result = classify_smart_exit_code(exit_code)
    health = smart_health_text(output)
    if health == "FAILED":
        return Classification(SmartStatus.CRITICAL, "Self-assessment FAILED")
    if health is not None:
        result.reason = f"{health}; {result.reason}"
    return result


_POOL_TOKENS: Dict[str, PoolHealth] = {
    "ONLINE": PoolHealth.ONLINE,
    "DEGRADED": PoolHealth.DEGRADED,
    "FAULTED": PoolHealth.FAULTED,
    "UNAVAIL": PoolHealth.UNAVAIL,
}

_SCRUB_DONE = re.compile(r"scrub repaired (\S+) in .*? with (\d+) errors")


def pool_operations(status_text: str) -> Tuple[bool, bool, bool]:
    """Return (scrub active, resilver active, finished scrub found errors)."""
    if "scrub in progress" in status_text:
        return True, False, False
    if "resilver in progress" in status_text:
        return False, True, False
    match = _SCRUB_DONE.search(status_text)
    if match:
        repaired, errors = match.group(1), int(match.group(2))
        if errors > 0 or repaired.rstrip("B") not in ("0", ""):
            return False, False, True
    return False, False, False


def classify_pool(health_token: str, status_text: str) -> Classification:
    token = health_token.strip().upper()
    state = _POOL_TOKENS.get(token, PoolHealth.UNKNOWN)
    scrub_active, resilver_active, scrub_errors = pool_operations(status_text)
    if scrub_active:
        return Classification(PoolHealth.SCRUB_ACTIVE, f"{token or '?'}, scrub in progress")
    if resilver_active:
        return Classification(PoolHealth.RESILVER_ACTIVE, f"{token or '?'}, resilver in progress")
    if scrub_errors and state is PoolHealth.ONLINE:
        return Classification(PoolHealth.SCRUB_ERRORS, "ONLINE, last scrub repaired errors")
    return Classification(state, token or "no health reported")


_DISK_TOKENS: Dict[str, PoolDiskStatus] = {
    "ONLINE": PoolDiskStatus.ONLINE,
    "DEGRADED": PoolDiskStatus.DEGRADED,
    "FAULTED": PoolDiskStatus.FAULTED,
    "OFFLINE": PoolDiskStatus.FAULTED,
    "UNAVAIL": PoolDiskStatus.FAULTED,
}


def _member_pattern(device_name: str) -> "re.Pattern[str]":
    # sda also matches its partitions (sda1, sda-part1, nvme0n1p1) but not sdaa
    return re.compile(
        rf"(?<![\w-]){re.escape(device_name)}(?:-part\d+|p?\d+)?(?![\w-])(?:[ \t]+(\S+))?"
    )


def classify_pool_disk(
    device_present: bool, device_name: str, pool_statuses: Mapping[str, str]
) -> Classification:
    if not device_present or not device_name:
        return Classification(PoolDiskStatus.DEVICE_NOT_FOUND, "Device not found")

    pattern = _member_pattern(device_name)
    for pool, status_text in pool_statuses.items():
        match = pattern.search(status_text)
        if match is None:
            continue
        token = match.group(1) or ""
        state = _DISK_TOKENS.get(token)
        if state is None:
            return Classification(PoolDiskStatus.ONLINE, f"listed in {pool}, state unreadable")
        return Classification(state, f"{token} in {pool}")
    return Classification(PoolDiskStatus.NOT_IN_POOL, "Not in any pool")
