from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .errors import ConfigError
from .models import LedColor, Strategy

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/ugreen-monitor.conf"


@dataclass(frozen=True)
class Colors:
    healthy: LedColor = LedColor(0, 255, 0)
    warning: LedColor = LedColor(255, 255, 0)
    critical: LedColor = LedColor(255, 0, 0)
    offline: LedColor = LedColor(0, 0, 255)
    disabled: LedColor = LedColor(0, 0, 0)
    # ZFS pool and pool member states
    online: LedColor = LedColor(0, 255, 0)
    degraded: LedColor = LedColor(255, 255, 0)
    faulted: LedColor = LedColor(255, 0, 0)
    unavail: LedColor = LedColor(0, 0, 255)
    zfs_offline: LedColor = LedColor(64, 64, 64)
    scrub_active: LedColor = LedColor(255, 128, 0)
    resilver: LedColor = LedColor(0, 255, 255)
    scrub_errors: LedColor = LedColor(128, 0, 255)


@dataclass(frozen=True)
class Config:
    monitor_interval: int = 30
    monitor_network: bool = True
    monitor_disks: bool = True
    monitor_zfs_pools: bool = False
    monitor_zfs_disks: bool = False
    monitor_scrub_status: bool = False
    turn_off_leds_on_exit: bool = False

    ugreen_leds_cli: str = "ugreen_leds_cli"

    network_interfaces: Tuple[str, ...] = ()
    ping_target: str = "8.8.8.8"
    ping_count: int = 1
    ping_timeout: int = 3

    network_led: str = "netdev"
    pool_led: str = "power"
    scrub_led: str = "netdev"

    zfs_pools: Tuple[str, ...] = ()

    mapping_method: Strategy = Strategy.ATA
    serial_map: Tuple[str, ...] = ()

    colors: Colors = field(default_factory=Colors)

    def validate(self) -> "Config":
        if self.monitor_interval <= 0:
            raise ConfigError(f"monitor interval must be positive, got {self.monitor_interval}")
        if self.mapping_method is Strategy.SERIAL and not self.serial_map:
            raise ConfigError("MAPPING_METHOD=serial requires SERIAL_MAP")
        return self


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_positive(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"must be positive: {value!r}")
    return number


def _parse_list(value: str) -> Tuple[str, ...]:
    return tuple(part for part in value.replace(",", " ").split() if part)


_KEYS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "UGREEN_LEDS_CLI": ("ugreen_leds_cli", str),
    "MONITOR_INTERVAL": ("monitor_interval", _parse_positive),
    "MONITOR_NETWORK": ("monitor_network", _parse_bool),
    "MONITOR_DISKS": ("monitor_disks", _parse_bool),
    "MONITOR_ZFS_POOLS": ("monitor_zfs_pools", _parse_bool),
    "MONITOR_ZFS_DISKS": ("monitor_zfs_disks", _parse_bool),
    "MONITOR_SCRUB_STATUS": ("monitor_scrub_status", _parse_bool),
    "TURN_OFF_LEDS_ON_EXIT": ("turn_off_leds_on_exit", _parse_bool),
    "NETWORK_INTERFACES": ("network_interfaces", _parse_list),
    "PING_TARGET": ("ping_target", str),
    "PING_COUNT": ("ping_count", _parse_positive),
    "PING_TIMEOUT": ("ping_timeout", _parse_positive),
    "NETWORK_LED": ("network_led", str),
    "POOL_STATUS_LED": ("pool_led", str),
    "SCRUB_STATUS_LED": ("scrub_led", str),
    "ZFS_POOLS": ("zfs_pools", _parse_list),
    "MAPPING_METHOD": ("mapping_method", lambda v: Strategy(v.strip().lower())),
    "SERIAL_MAP": ("serial_map", _parse_list),
}

_COLOR_KEYS: Dict[str, str] = {
    "COLOR_HEALTHY": "healthy",
    "COLOR_ONLINE": "online",
    "COLOR_WARNING": "warning",
    "COLOR_DEGRADED": "degraded",
    "COLOR_CRITICAL": "critical",
    "COLOR_FAULTED": "faulted",
    "COLOR_OFFLINE": "offline",
    "COLOR_UNAVAIL": "unavail",
    "COLOR_ZFS_OFFLINE": "zfs_offline",
    "COLOR_DISABLED": "disabled",
    "COLOR_SCRUB_ACTIVE": "scrub_active",
    "COLOR_RESILVER": "resilver",
    "COLOR_SCRUB_ERRORS": "scrub_errors",
}


def _split_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return key.strip().upper(), value


def parse_config(text: str, base: Optional[Config] = None) -> Config:
    values: Dict[str, Any] = {}
    colors: Dict[str, LedColor] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        parsed = _split_line(line)
        if parsed is None:
            continue
        key, value = parsed
        try:
            if key in _KEYS:
                name, convert = _KEYS[key]
                values[name] = convert(value)
            elif key in _COLOR_KEYS:
                colors[_COLOR_KEYS[key]] = LedColor.parse(value)
            else:
                _LOGGER.debug("Ignoring unknown config key %s on line %d", key, lineno)
        except ValueError as err:
            _LOGGER.warning("Invalid value for %s on line %d (%s), using default", key, lineno, err)

    config = base or Config()
    if colors:
        values["colors"] = replace(config.colors, **colors)
    return replace(config, **values)


def load_config(path: Union[str, Path, None] = None) -> Config:
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if path:
            raise ConfigError(f"config file not found: {config_path}")
        _LOGGER.info("Config file not found, using defaults: %s", config_path)
        return Config()
    except OSError as err:
        raise ConfigError(f"cannot read {config_path}: {err}") from err
    return parse_config(text).validate()


def describe(config: Config) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for f in fields(config):
        value = getattr(config, f.name)
        if isinstance(value, Strategy):
            value = value.value
        elif isinstance(value, Colors):
            value = {c.name: str(getattr(value, c.name)) for c in fields(value)}
        elif isinstance(value, tuple):
            value = list(value)
        result[f.name] = value
    return result
