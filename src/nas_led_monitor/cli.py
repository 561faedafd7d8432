from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import Config, load_config
from .errors import ConfigError
from .leds import load_i2c_module
from .monitor import Monitor
from .probe import Probe

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nas-led-monitor",
        description="Network, disk and ZFS health monitor for NAS front panel LEDs.",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", help="Config file (default: /etc/ugreen-monitor.conf)")
    parser.add_argument("-i", "--interval", type=int, help="Monitoring interval in seconds")
    only = parser.add_mutually_exclusive_group()
    only.add_argument("-n", "--network-only", action="store_true", help="Monitor network only")
    only.add_argument("-d", "--disks-only", action="store_true", help="Monitor disks only")
    only.add_argument("-p", "--pools-only", action="store_true", help="Monitor ZFS pools only")
    parser.add_argument(
        "-z", "--zfs", action="store_true",
        help="Show ZFS pool health, scrub status and pool membership of each disk",
    )
    parser.add_argument("-t", "--test", action="store_true", help="Run one cycle and exit")
    parser.add_argument("-s", "--status", action="store_true", help="Show monitor status and exit")
    parser.add_argument("--gui", action="store_true", help="Open the status window (needs PySide6)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    changes = {}
    if args.interval is not None:
        changes["monitor_interval"] = args.interval
    if args.zfs:
        changes.update(monitor_zfs_pools=True, monitor_zfs_disks=True, monitor_scrub_status=True)
    if args.network_only:
        changes.update(
            monitor_network=True, monitor_disks=False, monitor_zfs_pools=False,
            monitor_zfs_disks=False, monitor_scrub_status=False,
        )
    elif args.disks_only:
        zfs_disks = changes.get("monitor_zfs_disks", config.monitor_zfs_disks)
        changes.update(
            monitor_network=False, monitor_disks=not zfs_disks, monitor_zfs_disks=zfs_disks,
            monitor_zfs_pools=False, monitor_scrub_status=False,
        )
    elif args.pools_only:
        changes.update(
            monitor_network=False, monitor_disks=False, monitor_zfs_disks=False,
            monitor_zfs_pools=True, monitor_scrub_status=True,
        )
    return replace(config, **changes).validate()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    if hasattr(os, "geteuid") and os.geteuid() != 0:
        _LOGGER.warning("Not running as root, LED and SMART access will likely fail")

    probe = Probe()
    load_i2c_module(probe)
    monitor = Monitor(config, probe=probe)

    if args.status:
        print(json.dumps(monitor.status(), indent=2))
        return 0

    if args.gui:
        from .ui import main as ui_main

        return ui_main(monitor)

    if args.test:
        print("Running single test cycle...")
        result = monitor.run_cycle()
        for line in result.lines():
            print(f"  {line}")
        print("Test cycle completed.")
        return 0

    stop = threading.Event()

    def _handle(signum, _frame) -> None:
        _LOGGER.info("Received signal %d, shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
    monitor.run(stop)
    _LOGGER.info("Monitor shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
