from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from shutil import which
from typing import Dict, List, Optional, Sequence

from .errors import ProbeUnavailable

_LOGGER = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    stdout: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Probe:
    """Runs introspection commands and reads sysfs on the local host.

    Everything the classifiers and the resolver learn about the machine goes
    through this class, so tests can substitute a scripted instance.
    """

    def __init__(self) -> None:
        self._paths: Dict[str, Optional[str]] = {}

    def find(self, name: str) -> Optional[str]:
        if name not in self._paths:
            self._paths[name] = which(name)
        return self._paths[name]

    def has_command(self, name: str) -> bool:
        return self.find(name) is not None

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> ProbeResult:
        if not cmd:
            raise ValueError("empty command")
        exe = self.find(cmd[0]) if os.sep not in cmd[0] else cmd[0]
        if not exe:
            raise ProbeUnavailable(f"{cmd[0]} not found in PATH")
        try:
            proc = subprocess.run(
                [exe, *cmd[1:]],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProbeUnavailable(f"{cmd[0]} timed out after {timeout}s") from exc
        except OSError as exc:
            raise ProbeUnavailable(f"{cmd[0]} could not be run: {exc}") from exc
        if proc.returncode != 0 and proc.stderr.strip():
            _LOGGER.debug("%s exited %d: %s", cmd[0], proc.returncode, proc.stderr.strip())
        return ProbeResult(stdout=proc.stdout, exit_code=proc.returncode)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def listdir(self, path: str) -> List[str]:
        try:
            return sorted(os.listdir(path))
        except OSError as exc:
            raise ProbeUnavailable(f"cannot list {path}: {exc}") from exc

    def readlink(self, path: str) -> str:
        try:
            return os.readlink(path)
        except OSError as exc:
            raise ProbeUnavailable(f"cannot read link {path}: {exc}") from exc

    def read_text(self, path: str) -> str:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as exc:
            raise ProbeUnavailable(f"cannot read {path}: {exc}") from exc
