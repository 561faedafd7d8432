from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from .errors import DeviceAbsent, ParseAmbiguous, ProbeUnavailable
from .models import Classification, SmartDiskInfo, SmartStatus
from .probe import Probe
from .rules import classify_smart

_LOGGER = logging.getLogger(__name__)


def has_smartctl(probe: Probe) -> bool:
    return probe.has_command("smartctl")


def _run_health(probe: Probe, device: str) -> Tuple[int, str]:
    # smartctl return codes are a bitmask; the text is still worth reading
    proc = probe.run(["smartctl", "-H", device])
    return proc.exit_code, proc.stdout


def _run_details(probe: Probe, device: str) -> Dict[str, Any]:
    proc = probe.run(["smartctl", "-i", "-A", "-j", device])
    if not proc.stdout.strip():
        raise ProbeUnavailable(f"smartctl returned no output for {device}", exit_code=proc.exit_code)
    try:
        return json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise ParseAmbiguous(f"smartctl returned non-JSON output for {device}") from exc


def _get_attr_value(attr: Dict[str, Any]) -> Optional[int]:
    raw = attr.get("raw", {})
    if isinstance(raw, dict):
        val = raw.get("value")
    else:
        val = raw
    if val is None:
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _require_device(probe: Probe, device: str) -> None:
    if not probe.exists(device):
        raise DeviceAbsent(f"{device} does not exist")


def check_smart_status(probe: Probe, device: str) -> Classification:
    try:
        _require_device(probe, device)
        exit_code, text = _run_health(probe, device)
    except DeviceAbsent:
        return classify_smart(False, 0, "")
    except ProbeUnavailable as exc:
        return Classification(SmartStatus.UNAVAILABLE, str(exc))
    return classify_smart(True, exit_code, text)


def get_smart_info(probe: Probe, device: str) -> SmartDiskInfo:
    result = check_smart_status(probe, device)
    info = SmartDiskInfo(device=device, status=result.state, health_text=result.reason)
    if result.state in (SmartStatus.DEVICE_NOT_FOUND, SmartStatus.UNAVAILABLE):
        return info

    try:
        data = _run_details(probe, device)
    except (ProbeUnavailable, ParseAmbiguous) as exc:
        _LOGGER.debug("SMART details for %s unavailable: %s", device, exc)
        return info

    model = data.get("model_name") or data.get("model_number")
    serial = data.get("serial_number")
    info.model = str(model) if model is not None else None
    info.serial = str(serial) if serial is not None else None

    if isinstance(data.get("temperature"), dict):
        info.temperature_c = data["temperature"].get("current")

    table = []
    if isinstance(data.get("ata_smart_attributes"), dict):
        table = data["ata_smart_attributes"].get("table", [])
    for attr in table:
        if attr.get("id") == 5:
            info.reallocated_sectors = _get_attr_value(attr)
        elif attr.get("id") == 197:
            info.pending_sectors = _get_attr_value(attr)
        elif attr.get("id") in (190, 194) and info.temperature_c is None:
            info.temperature_c = _get_attr_value(attr)

    if "nvme_smart_health_information_log" in data and info.temperature_c is None:
        info.temperature_c = data["nvme_smart_health_information_log"].get("temperature")

    return info
