"""Error hierarchy for the monitor.

Query helpers raise these; the resolver and the monitor loop catch them at
their boundaries and degrade to a health state instead of aborting a cycle.
"""
from __future__ import annotations

from typing import Optional


class MonitorError(Exception):
    """Base class for monitor errors."""


class ProbeUnavailable(MonitorError):
    """An external tool is missing or could not be run."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class DeviceAbsent(MonitorError):
    """A device path does not exist on the filesystem."""


class ParseAmbiguous(MonitorError):
    """Tool output did not contain the expected structure."""


class IndicatorWriteFailed(MonitorError):
    """The LED controller rejected a write."""


class ConfigError(MonitorError):
    """The configuration cannot be used."""
