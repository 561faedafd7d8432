from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

from .errors import ParseAmbiguous, ProbeUnavailable
from .models import NetworkInterface
from .probe import Probe

_LOGGER = logging.getLogger(__name__)

SYS_BLOCK = "/sys/block"
SYS_NET = "/sys/class/net"

_SATA_DEVICE = re.compile(r"^sd[a-z]+$")
_MONITORED_IFACE = re.compile(r"(eth|ens|enp|eno|br[0-9])")
_IGNORED_IFACE_PREFIXES = ("lo", "docker", "veth", "virbr")


def _run_json(probe: Probe, cmd: List[str]) -> Any:
    proc = probe.run(cmd)
    if not proc.stdout.strip():
        raise ProbeUnavailable(f"{cmd[0]} returned no output", exit_code=proc.exit_code)
    try:
        return json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise ParseAmbiguous(f"{cmd[0]} returned non-JSON output") from exc


def list_sata_devices(probe: Probe) -> List[str]:
    return [name for name in probe.listdir(SYS_BLOCK) if _SATA_DEVICE.match(name)]


def controller_link(probe: Probe, device: str) -> str:
    return probe.readlink(f"{SYS_BLOCK}/{device}")


def scsi_table(probe: Probe, column: str) -> List[Tuple[str, str]]:
    """Return ``(value, device path)`` pairs from ``lsblk -S`` in listing order."""
    data = _run_json(probe, ["lsblk", "-S", "-J", "-o", f"{column},NAME"])
    if not isinstance(data, dict) or not isinstance(data.get("blockdevices"), list):
        raise ParseAmbiguous("lsblk output has no blockdevices list")
    key = column.lower()
    result: List[Tuple[str, str]] = []
    for dev in data["blockdevices"]:
        if not isinstance(dev, dict):
            continue
        value = dev.get(key)
        name = dev.get("name")
        if value is None or not name:
            continue
        result.append((str(value).strip(), f"/dev/{name}"))
    return result


def product_name(probe: Probe) -> str:
    try:
        proc = probe.run(["dmidecode", "--string", "system-product-name"])
    except ProbeUnavailable as exc:
        _LOGGER.debug("Hardware model lookup failed: %s", exc)
        return ""
    if proc.exit_code != 0:
        return ""
    return proc.stdout.strip()


def _interface_speed(probe: Probe, name: str) -> Optional[int]:
    try:
        text = probe.read_text(f"{SYS_NET}/{name}/speed").strip()
    except ProbeUnavailable:
        return None
    try:
        speed = int(text)
    except ValueError:
        return None
    return speed if speed > 0 else None


def _is_monitored(name: str) -> bool:
    if name.startswith(_IGNORED_IFACE_PREFIXES):
        return False
    return _MONITORED_IFACE.search(name) is not None


def network_interfaces(probe: Probe, names: Sequence[str] = ()) -> List[NetworkInterface]:
    """List interfaces with link state.

    With ``names`` empty the physical and bridge interfaces are auto-detected;
    otherwise exactly the configured names are reported, missing ones as down.
    """
    data = _run_json(probe, ["ip", "-j", "-d", "link", "show"])
    if not isinstance(data, list):
        raise ParseAmbiguous("ip link output is not a list")

    links = {}
    for link in data:
        if isinstance(link, dict) and link.get("ifname"):
            links[link["ifname"]] = link

    wanted = list(names) if names else [n for n in links if _is_monitored(n)]

    result: List[NetworkInterface] = []
    for name in wanted:
        link = links.get(name)
        if link is None:
            result.append(NetworkInterface(name=name, is_up=False, is_bridge=name.startswith("br")))
            continue
        kind = (link.get("linkinfo") or {}).get("info_kind")
        is_bridge = kind == "bridge" or name.startswith("br")
        is_up = str(link.get("operstate", "")).upper() == "UP"
        result.append(
            NetworkInterface(
                name=name,
                is_up=is_up,
                is_bridge=is_bridge,
                speed=_interface_speed(probe, name) if is_up else None,
            )
        )
    return result


def ping(probe: Probe, target: str, count: int = 1, timeout: int = 3) -> bool:
    try:
        proc = probe.run(["ping", "-c", str(count), "-W", str(timeout), target])
    except ProbeUnavailable as exc:
        _LOGGER.warning("Connectivity test to %s could not run: %s", target, exc)
        return False
    return proc.exit_code == 0
