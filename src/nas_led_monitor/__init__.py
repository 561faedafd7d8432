"""NAS health monitor driving front panel status LEDs."""

from .aggregate import aggregate, summarize_operations
from .config import Config, load_config
from .models import (
    CycleResult,
    LedColor,
    NetworkStatus,
    PoolDiskStatus,
    PoolHealth,
    SmartStatus,
    Strategy,
)
from .monitor import Monitor, build_indicator_bindings
from .resolver import DiskResolver
from .rules import classify_network, classify_pool, classify_pool_disk, classify_smart

__version__ = "1.0.0"

__all__ = [
    "Config",
    "CycleResult",
    "DiskResolver",
    "LedColor",
    "Monitor",
    "NetworkStatus",
    "PoolDiskStatus",
    "PoolHealth",
    "SmartStatus",
    "Strategy",
    "aggregate",
    "build_indicator_bindings",
    "classify_network",
    "classify_pool",
    "classify_pool_disk",
    "classify_smart",
    "load_config",
    "summarize_operations",
]
