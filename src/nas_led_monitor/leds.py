from __future__ import annotations

import logging
from typing import Iterable, List

from .errors import IndicatorWriteFailed, ProbeUnavailable
from .models import LedColor
from .probe import Probe

_LOGGER = logging.getLogger(__name__)

LED_NAMES = ("power", "netdev") + tuple(f"disk{i}" for i in range(1, 9))


class LedDriver:
    """Best-effort writer for the front panel LEDs.

    Subclasses implement ``_write``. The first failed write disables the
    driver for the rest of the process; later calls return False.
    """

    def __init__(self) -> None:
        self.available = True

    def _write(self, name: str, args: List[str]) -> None:
        """Send one command to LED ``name``. Subclasses must override this.

        Raise ``IndicatorWriteFailed`` when the controller rejects the write.
        """
        raise NotImplementedError

    def _call(self, name: str, args: List[str]) -> bool:
        if not self.available:
            return False
        try:
            self._write(name, args)
        except IndicatorWriteFailed as err:
            _LOGGER.warning("LED output disabled: %s", err)
            self.available = False
            return False
        return True

    def set_color(self, name: str, r: int, g: int, b: int) -> bool:
        return self._call(name, ["-color", str(r), str(g), str(b)])

    def set_brightness(self, name: str, level: int) -> bool:
        level = max(0, min(255, int(level)))
        return self._call(name, ["-brightness", str(level)])

    def set_enabled(self, name: str, on: bool) -> bool:
        return self._call(name, ["-on" if on else "-off"])

    def apply(self, name: str, color: LedColor, brightness: int = 255) -> bool:
        if not self.set_color(name, *color.as_tuple()):
            return False
        if not self.set_brightness(name, brightness):
            return False
        return self.set_enabled(name, True)

    def turn_off_all(self, names: Iterable[str] = LED_NAMES) -> bool:
        ok = True
        for name in names:
            ok = self.set_enabled(name, False) and ok
        return ok


class CliLedDriver(LedDriver):
    """Drives LEDs through the ``ugreen_leds_cli`` tool."""

    def __init__(self, probe: Probe, cli_path: str = "ugreen_leds_cli") -> None:
        super().__init__()
        self._probe = probe
        self._cli = cli_path
        if not probe.has_command(cli_path) and not probe.exists(cli_path):
            _LOGGER.warning("LED controller not available: %s not found", cli_path)
            self.available = False

    def _write(self, name: str, args: List[str]) -> None:
        try:
            proc = self._probe.run([self._cli, name, *args])
        except ProbeUnavailable as err:
            raise IndicatorWriteFailed(str(err)) from err
        if proc.exit_code != 0:
            raise IndicatorWriteFailed(f"{self._cli} {name} {' '.join(args)} exited {proc.exit_code}")


def load_i2c_module(probe: Probe) -> bool:
    try:
        proc = probe.run(["modprobe", "i2c-dev"])
    except ProbeUnavailable as err:
        _LOGGER.warning("Failed to load i2c-dev: %s", err)
        return False
    if proc.exit_code != 0:
        _LOGGER.warning("Failed to load i2c-dev (exit %d)", proc.exit_code)
        return False
    return True
