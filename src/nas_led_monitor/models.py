from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


SLOT_COUNT = 8


class NetworkStatus(Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class SmartStatus(Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNAVAILABLE = "unavailable"
    DEVICE_NOT_FOUND = "device_not_found"


class PoolHealth(Enum):
    ONLINE = "online"
    DEGRADED = "degraded"
    FAULTED = "faulted"
    UNAVAIL = "unavail"
    SCRUB_ACTIVE = "scrub_active"
    RESILVER_ACTIVE = "resilver_active"
    SCRUB_ERRORS = "scrub_errors"
    UNKNOWN = "unknown"


class PoolDiskStatus(Enum):
    ONLINE = "online"
    DEGRADED = "degraded"
    FAULTED = "faulted"
    NOT_IN_POOL = "not_in_pool"
    DEVICE_NOT_FOUND = "device_not_found"
    UNKNOWN = "unknown"


class Strategy(Enum):
    ATA = "ata"
    HCTL = "hctl"
    SERIAL = "serial"


@dataclass(frozen=True)
class LedColor:
    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"color channel out of range: {channel}")

    @classmethod
    def parse(cls, text: str) -> "LedColor":
        parts = text.split()
        if len(parts) < 3:
            raise ValueError(f"expected 'R G B', got {text!r}")
        return cls(int(parts[0]), int(parts[1]), int(parts[2]))

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def __str__(self) -> str:
        return f"{self.r} {self.g} {self.b}"


@dataclass
class Classification:
    state: Enum
    reason: str = ""


@dataclass(frozen=True)
class SlotMapping:
    strategy: Strategy
    keys: Tuple[str, ...]

    def key_for(self, slot: int) -> Optional[str]:
        if 0 <= slot < len(self.keys):
            return self.keys[slot] or None
        return None


@dataclass
class NetworkInterface:
    name: str
    is_up: bool
    is_bridge: bool
    speed: Optional[int] = None


@dataclass
class PoolInfo:
    name: str
    health: PoolHealth
    scrub_active: bool = False
    resilver_active: bool = False
    scrub_errors: bool = False


@dataclass
class SmartDiskInfo:
    device: str
    status: SmartStatus
    health_text: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    temperature_c: Optional[int] = None
    reallocated_sectors: Optional[int] = None
    pending_sectors: Optional[int] = None


@dataclass
class IndicatorUpdate:
    indicator: str
    state: Optional[Enum]
    color: LedColor
    brightness: int
    reason: str = ""
    device: Optional[str] = None
    applied: bool = False


@dataclass
class CycleResult:
    started_at: datetime
    updates: Dict[str, IndicatorUpdate] = field(default_factory=dict)

    def add(self, update: IndicatorUpdate) -> None:
        self.updates[update.indicator] = update

    def lines(self) -> List[str]:
        result: List[str] = []
        for name, update in self.updates.items():
            state = update.state.name if update.state is not None else "ABSENT"
            suffix = f" - {update.device}" if update.device else ""
            result.append(f"{name}: {state} ({update.reason}){suffix}")
        return result

    def to_report(self) -> List[Dict[str, object]]:
        return [
            {
                "indicator": update.indicator,
                "state": update.state.name if update.state is not None else None,
                "device": update.device,
                "color": list(update.color.as_tuple()),
                "brightness": update.brightness,
                "reason": update.reason,
                "applied": update.applied,
            }
            for update in self.updates.values()
        ]
