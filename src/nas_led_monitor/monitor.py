from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from . import platform, smartctl, zfs
from .aggregate import aggregate, summarize_operations
from .config import Config, describe
from .errors import MonitorError
from .leds import LED_NAMES, CliLedDriver, LedDriver
from .models import (
    SLOT_COUNT,
    Classification,
    CycleResult,
    IndicatorUpdate,
    LedColor,
    NetworkStatus,
    PoolDiskStatus,
    PoolHealth,
    PoolInfo,
    SmartStatus,
)
from .probe import Probe
from .resolver import DiskResolver
from .rules import classify_network, classify_pool_disk

_LOGGER = logging.getLogger(__name__)

FULL_BRIGHTNESS = 255
IDLE_BRIGHTNESS = 128

# Attribute of config.Colors used for each state.
STATE_COLORS: Dict[Enum, str] = {
    NetworkStatus.HEALTHY: "healthy",
    NetworkStatus.WARNING: "warning",
    NetworkStatus.CRITICAL: "critical",
    NetworkStatus.UNKNOWN: "offline",
    SmartStatus.HEALTHY: "healthy",
    SmartStatus.WARNING: "warning",
    SmartStatus.CRITICAL: "critical",
    SmartStatus.UNAVAILABLE: "offline",
    SmartStatus.DEVICE_NOT_FOUND: "disabled",
    PoolHealth.ONLINE: "online",
    PoolHealth.DEGRADED: "degraded",
    PoolHealth.FAULTED: "faulted",
    PoolHealth.UNAVAIL: "unavail",
    PoolHealth.UNKNOWN: "unavail",
    PoolHealth.SCRUB_ACTIVE: "scrub_active",
    PoolHealth.RESILVER_ACTIVE: "resilver",
    PoolHealth.SCRUB_ERRORS: "scrub_errors",
    PoolDiskStatus.ONLINE: "online",
    PoolDiskStatus.DEGRADED: "degraded",
    PoolDiskStatus.FAULTED: "faulted",
    PoolDiskStatus.NOT_IN_POOL: "unavail",
    PoolDiskStatus.DEVICE_NOT_FOUND: "zfs_offline",
    PoolDiskStatus.UNKNOWN: "zfs_offline",
}


def color_for(config: Config, state: Enum) -> LedColor:
    return getattr(config.colors, STATE_COLORS[state])


def disk_role(slot: int) -> str:
    return f"disk{slot + 1}"


def build_indicator_bindings(config: Config) -> Dict[str, str]:
    """Map each monitored role to the LED that shows it, in update order."""
    bindings: Dict[str, str] = {}
    if config.monitor_network:
        bindings["network"] = config.network_led
    if config.monitor_zfs_pools:
        bindings["pool"] = config.pool_led
    if config.monitor_scrub_status:
        if config.scrub_led in bindings.values():
            _LOGGER.warning(
                "Scrub status LED %s is already in use, scrub status will not be shown",
                config.scrub_led,
            )
        else:
            bindings["scrub"] = config.scrub_led
    if config.monitor_disks or config.monitor_zfs_disks:
        for slot in range(SLOT_COUNT):
            bindings[disk_role(slot)] = disk_role(slot)
    return bindings


@dataclass
class _PoolSnapshot:
    statuses: Dict[str, str] = field(default_factory=dict)
    infos: List[PoolInfo] = field(default_factory=list)
    error: Optional[str] = None
    members: Dict[str, str] = field(default_factory=dict)
    members_error: Optional[str] = None


class Monitor:
    def __init__(
        self,
        config: Config,
        probe: Optional[Probe] = None,
        driver: Optional[LedDriver] = None,
        resolver: Optional[DiskResolver] = None,
    ) -> None:
        self.config = config
        self.probe = probe or Probe()
        self.driver = driver if driver is not None else CliLedDriver(self.probe, config.ugreen_leds_cli)
        self.bindings = build_indicator_bindings(config)
        self._resolver = resolver
        self.running = False

    @property
    def resolver(self) -> DiskResolver:
        if self._resolver is None:
            self._resolver = DiskResolver(
                self.probe, self.config.mapping_method, self.config.serial_map
            )
        return self._resolver

    def run_cycle(self) -> CycleResult:
        result = CycleResult(started_at=datetime.now())
        _LOGGER.info("=== Monitor check at %s ===", result.started_at.strftime("%Y-%m-%d %H:%M:%S"))

        pools: Optional[_PoolSnapshot] = None
        if "pool" in self.bindings or "scrub" in self.bindings or self.config.monitor_zfs_disks:
            pools = self._pool_snapshot()

        if "network" in self.bindings:
            self._guarded(result, "network", NetworkStatus.UNKNOWN, self._check_network)
        if "pool" in self.bindings and pools is not None:
            self._guarded(result, "pool", PoolHealth.UNKNOWN, lambda: self._check_pools(pools))
        if "scrub" in self.bindings and pools is not None:
            self._guarded(result, "scrub", PoolHealth.UNKNOWN, lambda: self._check_operations(pools))
        if self.config.monitor_disks or self.config.monitor_zfs_disks:
            self._check_disks(result, pools)
        return result

    def _apply(
        self,
        result: CycleResult,
        role: str,
        state: Optional[Enum],
        color: LedColor,
        brightness: int,
        reason: str,
        device: Optional[str] = None,
    ) -> None:
        indicator = self.bindings[role]
        applied = self.driver.apply(indicator, color, brightness)
        update = IndicatorUpdate(
            indicator=indicator,
            state=state,
            color=color,
            brightness=brightness,
            reason=reason,
            device=device,
            applied=applied,
        )
        result.add(update)
        _LOGGER.info("%s (%s): %s%s", role, indicator, reason, f" - {device}" if device else "")

    def _classified(
        self,
        result: CycleResult,
        role: str,
        classification: Classification,
        brightness: int = FULL_BRIGHTNESS,
        device: Optional[str] = None,
    ) -> None:
        state = classification.state
        self._apply(
            result, role, state, color_for(self.config, state), brightness,
            classification.reason or state.name, device,
        )

    def _guarded(
        self,
        result: CycleResult,
        role: str,
        fallback: Enum,
        check: Callable[[], Classification],
    ) -> None:
        try:
            classification = check()
        except MonitorError as err:
            _LOGGER.warning("%s check failed: %s", role, err)
            classification = Classification(fallback, str(err))
        except Exception:
            _LOGGER.exception("Unexpected error during %s check", role)
            classification = Classification(fallback, "check failed")
        brightness = FULL_BRIGHTNESS
        if role == "scrub" and classification.state not in (
            PoolHealth.SCRUB_ACTIVE,
            PoolHealth.RESILVER_ACTIVE,
        ):
            brightness = IDLE_BRIGHTNESS
        self._classified(result, role, classification, brightness)

    def _check_network(self) -> Classification:
        interfaces = platform.network_interfaces(self.probe, self.config.network_interfaces)
        for iface in interfaces:
            kind = "Bridge" if iface.is_bridge else "Physical"
            _LOGGER.debug("%s interface %s is %s", kind, iface.name, "UP" if iface.is_up else "DOWN")
        connectivity: Optional[bool] = None
        if any(iface.is_up for iface in interfaces) and self.config.ping_target:
            connectivity = platform.ping(
                self.probe, self.config.ping_target, self.config.ping_count, self.config.ping_timeout
            )
            _LOGGER.debug(
                "Connectivity test to %s %s",
                self.config.ping_target,
                "successful" if connectivity else "failed",
            )
        return classify_network(interfaces, connectivity)

    def _pool_snapshot(self) -> _PoolSnapshot:
        snapshot = _PoolSnapshot()
        if "pool" in self.bindings or "scrub" in self.bindings:
            try:
                snapshot.statuses = zfs.pool_statuses(self.probe, self.config.zfs_pools)
                snapshot.infos = [
                    zfs.get_pool_info(self.probe, name, status)
                    for name, status in snapshot.statuses.items()
                ]
            except MonitorError as err:
                _LOGGER.warning("ZFS pool query failed: %s", err)
                snapshot.error = str(err)
        if self.config.monitor_zfs_disks:
            # membership covers every imported pool, not only ZFS_POOLS
            try:
                snapshot.members = zfs.member_statuses(self.probe, snapshot.statuses)
            except MonitorError as err:
                _LOGGER.warning("ZFS pool membership query failed: %s", err)
                snapshot.members_error = str(err)
        return snapshot

    def _check_pools(self, pools: _PoolSnapshot) -> Classification:
        if pools.error:
            return Classification(PoolHealth.UNKNOWN, pools.error)
        if not pools.infos:
            return Classification(PoolHealth.UNAVAIL, "No ZFS pools found to monitor")
        for info in pools.infos:
            _LOGGER.info("  %s: %s", info.name, info.health.name)
        overall = aggregate(info.health for info in pools.infos)
        return Classification(overall, f"{len(pools.infos)} pool(s), overall {overall.name}")

    def _check_operations(self, pools: _PoolSnapshot) -> Classification:
        if pools.error:
            return Classification(PoolHealth.UNKNOWN, pools.error)
        return summarize_operations(pools.infos)

    def _check_disks(self, result: CycleResult, pools: Optional[_PoolSnapshot]) -> None:
        for slot in range(SLOT_COUNT):
            role = disk_role(slot)
            if self.config.monitor_zfs_disks:
                fallback: Enum = PoolDiskStatus.UNKNOWN
            else:
                fallback = SmartStatus.UNAVAILABLE
            try:
                device = self.resolver.resolve(slot)
            except Exception:
                # an unreadable bay is not an empty bay
                _LOGGER.exception("Disk lookup for slot %d failed", slot)
                self._classified(result, role, Classification(fallback, "disk lookup failed"))
                continue
            if device is None:
                self._apply(
                    result, role, None, self.config.colors.disabled, 0, "No disk detected"
                )
                continue
            try:
                classification = self._classify_disk(device, pools)
            except MonitorError as err:
                _LOGGER.warning("Disk check for %s failed: %s", device, err)
                classification = Classification(fallback, str(err))
            except Exception:
                _LOGGER.exception("Unexpected error checking %s", device)
                classification = Classification(fallback, "check failed")
            self._classified(result, role, classification, device=device)

    def _classify_disk(self, device: str, pools: Optional[_PoolSnapshot]) -> Classification:
        if self.config.monitor_zfs_disks:
            if pools is None or pools.members_error:
                return Classification(PoolDiskStatus.UNKNOWN, "pool status unavailable")
            return classify_pool_disk(
                self.probe.exists(device), os.path.basename(device), pools.members
            )
        return smartctl.check_smart_status(self.probe, device)

    def run(self, stop: threading.Event) -> None:
        """Run cycles until ``stop`` is set; sleeps in one-second steps."""
        self.running = True
        interval = self.config.monitor_interval
        _LOGGER.info("Starting monitoring, interval %d seconds", interval)
        try:
            while not stop.is_set():
                self.run_cycle()
                _LOGGER.info("Next check in %d seconds", interval)
                for _ in range(interval):
                    if stop.wait(1):
                        break
        finally:
            self.running = False
            self.cleanup()

    def cleanup(self) -> None:
        if self.config.turn_off_leds_on_exit and self.driver.available:
            self.driver.turn_off_all(LED_NAMES)

    def status(self) -> Dict[str, object]:
        disks_enabled = self.config.monitor_disks or self.config.monitor_zfs_disks
        result: Dict[str, object] = {
            "led_controller": self.driver.available,
            "smartctl": smartctl.has_smartctl(self.probe),
            "zpool": zfs.has_zpool(self.probe),
            "monitoring": self.running,
            "detected_model": self.resolver.detected_model if disks_enabled else None,
            "bindings": dict(self.bindings),
            "config": describe(self.config),
        }
        if self.config.monitor_disks:
            result["disks"] = self._disk_details()
        return result

    def _disk_details(self) -> List[Dict[str, object]]:
        details: List[Dict[str, object]] = []
        for slot, device in enumerate(self.resolver.resolve_all()):
            entry: Dict[str, object] = {"slot": disk_role(slot), "device": device}
            if device is not None:
                info = smartctl.get_smart_info(self.probe, device)
                entry.update(
                    status=info.status.name,
                    model=info.model,
                    serial=info.serial,
                    temperature_c=info.temperature_c,
                    reallocated_sectors=info.reallocated_sectors,
                    pending_sectors=info.pending_sectors,
                )
            details.append(entry)
        return details
