"""Common fixtures for monitor tests."""
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from nas_led_monitor.config import Config
from nas_led_monitor.errors import IndicatorWriteFailed, ProbeUnavailable
from nas_led_monitor.leds import LedDriver
from nas_led_monitor.probe import Probe, ProbeResult


Scripted = Union[ProbeResult, Exception]


class FakeProbe(Probe):
    """Probe answering from scripted command output and an in-memory sysfs."""

    def __init__(self, executables: Sequence[str] = ()) -> None:
        super().__init__()
        self.executables = set(executables)
        self.commands: Dict[Tuple[str, ...], Scripted] = {}
        self.paths: set = set()
        self.dirs: Dict[str, List[str]] = {}
        self.links: Dict[str, str] = {}
        self.files: Dict[str, str] = {}
        self.calls: List[Tuple[str, ...]] = []

    def script(self, cmd: Sequence[str], stdout: str = "", exit_code: int = 0) -> None:
        self.commands[tuple(cmd)] = ProbeResult(stdout=stdout, exit_code=exit_code)
        self.executables.add(cmd[0])

    def fail(self, cmd: Sequence[str], error: Optional[Exception] = None) -> None:
        self.commands[tuple(cmd)] = error or ProbeUnavailable(f"{cmd[0]} failed")

    def find(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.executables else None

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> ProbeResult:
        key = tuple(cmd)
        self.calls.append(key)
        if key not in self.commands:
            raise ProbeUnavailable(f"{cmd[0]} not found in PATH")
        value = self.commands[key]
        if isinstance(value, Exception):
            raise value
        return value

    def exists(self, path: str) -> bool:
        return path in self.paths

    def listdir(self, path: str) -> List[str]:
        if path not in self.dirs:
            raise ProbeUnavailable(f"cannot list {path}")
        return sorted(self.dirs[path])

    def readlink(self, path: str) -> str:
        if path not in self.links:
            raise ProbeUnavailable(f"cannot read link {path}")
        return self.links[path]

    def read_text(self, path: str) -> str:
        if path not in self.files:
            raise ProbeUnavailable(f"cannot read {path}")
        return self.files[path]


class RecordingDriver(LedDriver):
    """LED driver that records writes and can be told to fail."""

    def __init__(self, fail_after: Optional[int] = None) -> None:
        super().__init__()
        self.writes: List[Tuple[str, Tuple[str, ...]]] = []
        self.fail_after = fail_after

    def _write(self, name: str, args: List[str]) -> None:
        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            raise IndicatorWriteFailed(f"write to {name} failed")
        self.writes.append((name, tuple(args)))

    def state_of(self, name: str) -> Dict[str, Tuple[str, ...]]:
        result: Dict[str, Tuple[str, ...]] = {}
        for led, args in self.writes:
            if led == name:
                result[args[0]] = args[1:]
        return result


@pytest.fixture
def probe():
    """Return an empty scripted probe."""
    return FakeProbe()


@pytest.fixture
def driver():
    """Return a recording LED driver."""
    return RecordingDriver()


@pytest.fixture
def config():
    """Return the default configuration."""
    return Config()
