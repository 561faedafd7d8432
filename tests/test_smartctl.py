"""Tests for the smartctl wrapper."""
import json

from nas_led_monitor import smartctl
from nas_led_monitor.models import SmartStatus

HEALTH = ("smartctl", "-H", "/dev/sda")
DETAILS = ("smartctl", "-i", "-A", "-j", "/dev/sda")

PASSED = "SMART overall-health self-assessment test result: PASSED\n"


def _present(probe):
    probe.paths.add("/dev/sda")
    return probe


def test_missing_device(probe):
    probe.script(HEALTH, PASSED)
    assert smartctl.check_smart_status(probe, "/dev/sda").state is SmartStatus.DEVICE_NOT_FOUND
    assert probe.calls == []


def test_missing_tool_is_unavailable(probe):
    _present(probe)
    result = smartctl.check_smart_status(probe, "/dev/sda")
    assert result.state is SmartStatus.UNAVAILABLE
    assert "smartctl" in result.reason


def test_passed(probe):
    _present(probe).script(HEALTH, PASSED)
    assert smartctl.check_smart_status(probe, "/dev/sda").state is SmartStatus.HEALTHY
    assert smartctl.has_smartctl(probe)


def test_error_log_bit_is_warning(probe):
    _present(probe).script(HEALTH, PASSED, exit_code=64)
    assert smartctl.check_smart_status(probe, "/dev/sda").state is SmartStatus.WARNING


def test_smart_info_attributes(probe):
    _present(probe).script(HEALTH, PASSED)
    probe.script(
        DETAILS,
        json.dumps(
            {
                "model_name": "WDC WD40EFRX",
                "serial_number": "WD-1234",
                "ata_smart_attributes": {
                    "table": [
                        {"id": 5, "raw": {"value": 8}},
                        {"id": 194, "raw": {"value": 36}},
                        {"id": 197, "raw": {"value": "2"}},
                    ]
                },
            }
        ),
    )
    info = smartctl.get_smart_info(probe, "/dev/sda")
    assert info.status is SmartStatus.HEALTHY
    assert (info.model, info.serial) == ("WDC WD40EFRX", "WD-1234")
    assert info.reallocated_sectors == 8
    assert info.pending_sectors == 2
    assert info.temperature_c == 36


def test_smart_info_prefers_reported_temperature(probe):
    _present(probe).script(HEALTH, PASSED)
    probe.script(
        DETAILS,
        json.dumps(
            {
                "temperature": {"current": 41},
                "ata_smart_attributes": {"table": [{"id": 194, "raw": {"value": 99}}]},
            }
        ),
    )
    assert smartctl.get_smart_info(probe, "/dev/sda").temperature_c == 41


def test_smart_info_nvme_temperature(probe):
    _present(probe).script(HEALTH, PASSED)
    probe.script(
        DETAILS,
        json.dumps({"model_number": "Samsung 980", "nvme_smart_health_information_log": {"temperature": 45}}),
    )
    info = smartctl.get_smart_info(probe, "/dev/sda")
    assert info.model == "Samsung 980"
    assert info.temperature_c == 45


def test_smart_info_bad_details_keeps_status(probe):
    _present(probe).script(HEALTH, PASSED, exit_code=8)
    probe.script(DETAILS, "not json")
    info = smartctl.get_smart_info(probe, "/dev/sda")
    assert info.status is SmartStatus.CRITICAL
    assert info.model is None


def test_smart_info_skips_details_for_missing_device(probe):
    info = smartctl.get_smart_info(probe, "/dev/sda")
    assert info.status is SmartStatus.DEVICE_NOT_FOUND
    assert probe.calls == []
