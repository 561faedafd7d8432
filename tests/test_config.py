"""Tests for configuration parsing."""
import logging

import pytest

from nas_led_monitor.config import Config, describe, load_config, parse_config
from nas_led_monitor.errors import ConfigError
from nas_led_monitor.models import (
    LedColor,
    NetworkStatus,
    PoolDiskStatus,
    PoolHealth,
    SmartStatus,
    Strategy,
)
from nas_led_monitor.monitor import color_for

SAMPLE = """
# UGREEN LED monitor
MONITOR_INTERVAL=60
MONITOR_ZFS_POOLS=true
monitor_network = no
NETWORK_INTERFACES="eth0 br0"
ZFS_POOLS='tank,backup'
MAPPING_METHOD=HCTL
POOL_STATUS_LED=netdev
COLOR_DEGRADED="255 165 0"
UNKNOWN_KEY=1
"""


def test_defaults():
    config = Config()
    assert config.monitor_interval == 30
    assert config.monitor_network and config.monitor_disks
    assert not config.monitor_zfs_pools
    assert config.mapping_method is Strategy.ATA
    assert config.colors.healthy == LedColor(0, 255, 0)
    assert config.colors.disabled == LedColor(0, 0, 0)


def test_parse_sample():
    config = parse_config(SAMPLE)
    assert config.monitor_interval == 60
    assert config.monitor_zfs_pools is True
    assert config.monitor_network is False
    assert config.network_interfaces == ("eth0", "br0")
    assert config.zfs_pools == ("tank", "backup")
    assert config.mapping_method is Strategy.HCTL
    assert config.pool_led == "netdev"
    assert config.colors.degraded == LedColor(255, 165, 0)
    assert config.colors.warning == Config().colors.warning
    assert config.colors.critical == Config().colors.critical


def test_invalid_value_keeps_default(caplog):
    with caplog.at_level(logging.WARNING):
        config = parse_config("MONITOR_INTERVAL=soon\nCOLOR_HEALTHY=0 300 0\nMAPPING_METHOD=wwn\n")
    assert config.monitor_interval == 30
    assert config.colors.healthy == LedColor(0, 255, 0)
    assert config.mapping_method is Strategy.ATA
    assert "MONITOR_INTERVAL" in caplog.text


def test_comments_and_blank_lines_ignored():
    assert parse_config("# MONITOR_INTERVAL=5\n\n   \nnot a setting\n") == Config()


def test_later_lines_win():
    assert parse_config("PING_TARGET=1.1.1.1\nPING_TARGET=9.9.9.9\n").ping_target == "9.9.9.9"


def test_serial_strategy_requires_map():
    with pytest.raises(ConfigError):
        parse_config("MAPPING_METHOD=serial\n").validate()
    config = parse_config("MAPPING_METHOD=serial\nSERIAL_MAP=WD-1 WD-2\n").validate()
    assert config.serial_map == ("WD-1", "WD-2")


def test_load_missing_default_path_uses_defaults(monkeypatch, tmp_path):
    monkeypatch.setattr("nas_led_monitor.config.DEFAULT_CONFIG_PATH", str(tmp_path / "absent.conf"))
    assert load_config() == Config()


def test_load_missing_explicit_path_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.conf")


def test_load_file(tmp_path):
    path = tmp_path / "monitor.conf"
    path.write_text("MONITOR_INTERVAL=10\nTURN_OFF_LEDS_ON_EXIT=yes\n", encoding="utf-8")
    config = load_config(path)
    assert config.monitor_interval == 10
    assert config.turn_off_leds_on_exit is True


def test_describe_is_plain_data():
    data = describe(parse_config("ZFS_POOLS=tank\n"))
    assert data["mapping_method"] == "ata"
    assert data["zfs_pools"] == ["tank"]
    assert data["colors"]["critical"] == "255 0 0"


def test_zfs_colors_are_separate_from_network_and_smart():
    config = parse_config("COLOR_ONLINE=0 0 255\nCOLOR_UNAVAIL=9 9 9\n")
    assert color_for(config, PoolHealth.ONLINE) == LedColor(0, 0, 255)
    assert color_for(config, PoolDiskStatus.NOT_IN_POOL) == LedColor(9, 9, 9)
    assert color_for(config, NetworkStatus.HEALTHY) == LedColor(0, 255, 0)
    assert color_for(config, SmartStatus.HEALTHY) == LedColor(0, 255, 0)
    assert color_for(config, SmartStatus.UNAVAILABLE) == LedColor(0, 0, 255)


def test_zfs_offline_color_for_missing_members():
    config = parse_config("COLOR_ZFS_OFFLINE=1 2 3\n")
    assert color_for(config, PoolDiskStatus.DEVICE_NOT_FOUND) == LedColor(1, 2, 3)
    assert color_for(Config(), PoolDiskStatus.UNKNOWN) == LedColor(64, 64, 64)
