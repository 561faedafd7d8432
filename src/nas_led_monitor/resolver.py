from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import MonitorError
from .models import SLOT_COUNT, SlotMapping, Strategy
from . import platform
from .probe import Probe

_LOGGER = logging.getLogger(__name__)


DEFAULT_ATA_KEYS: Tuple[str, ...] = tuple(f"ata{i + 1}" for i in range(SLOT_COUNT))
DEFAULT_HCTL_KEYS: Tuple[str, ...] = tuple(f"{i}:0:0:0" for i in range(SLOT_COUNT))


@dataclass(frozen=True)
class ModelWiring:
    pattern: str
    ata_keys: Tuple[str, ...]
    hctl_keys: Tuple[str, ...]


# Bay wiring for chassis whose front bays do not follow controller order.
MODEL_WIRING: Tuple[ModelWiring, ...] = (
    ModelWiring(
        pattern="DXP6800",
        ata_keys=("ata3", "ata4", "ata5", "ata6", "ata1", "ata2"),
        hctl_keys=("2:0:0:0", "3:0:0:0", "4:0:0:0", "5:0:0:0", "0:0:0:0", "1:0:0:0"),
    ),
)


def match_model(model: str) -> Optional[ModelWiring]:
    if not model:
        return None
    for wiring in MODEL_WIRING:
        if wiring.pattern in model:
            return wiring
    return None


def build_mapping(
    strategy: Strategy, model: str = "", serials: Sequence[str] = ()
) -> SlotMapping:
    if strategy is Strategy.SERIAL:
        return SlotMapping(strategy, tuple(s.strip() for s in serials[:SLOT_COUNT]))
    wiring = match_model(model)
    if strategy is Strategy.ATA:
        keys = wiring.ata_keys if wiring else DEFAULT_ATA_KEYS
    else:
        keys = wiring.hctl_keys if wiring else DEFAULT_HCTL_KEYS
    return SlotMapping(strategy, keys)


class DiskResolver:
    """Maps a bay slot (0-7) to a block device path.

    The hardware model is read once on construction and the slot table is
    fixed from then on. Every lookup failure resolves to ``None``.
    """

    def __init__(
        self,
        probe: Probe,
        strategy: Strategy = Strategy.ATA,
        serials: Sequence[str] = (),
        model: Optional[str] = None,
    ) -> None:
        self._probe = probe
        self._model = platform.product_name(probe) if model is None else model.strip()
        if match_model(self._model):
            _LOGGER.info("Detected %s, using its bay wiring", self._model)
        self._mapping = build_mapping(strategy, self._model, serials)

    @property
    def detected_model(self) -> str:
        return self._model

    @property
    def mapping(self) -> SlotMapping:
        return self._mapping

    def resolve(self, slot: int) -> Optional[str]:
        if not 0 <= slot < SLOT_COUNT:
            return None
        key = self._mapping.key_for(slot)
        if key is None:
            _LOGGER.debug("Slot %d has no %s key", slot, self._mapping.strategy.value)
            return None
        try:
            if self._mapping.strategy is Strategy.ATA:
                device = self._by_controller_port(key)
            elif self._mapping.strategy is Strategy.HCTL:
                device = self._by_table("HCTL", key)
            else:
                device = self._by_table("SERIAL", key)
        except MonitorError as exc:
            _LOGGER.warning("Disk lookup for slot %d failed: %s", slot, exc)
            return None
        if device is None:
            _LOGGER.debug("No device for slot %d (%s)", slot, key)
        return device

    def resolve_all(self) -> List[Optional[str]]:
        return [self.resolve(slot) for slot in range(SLOT_COUNT)]

    def _by_controller_port(self, port: str) -> Optional[str]:
        for dev in platform.list_sata_devices(self._probe):
            try:
                link = platform.controller_link(self._probe, dev)
            except MonitorError:
                continue
            if port in link.split("/"):
                return f"/dev/{dev}"
        return None

    def _by_table(self, column: str, key: str) -> Optional[str]:
        for value, device in platform.scsi_table(self._probe, column):
            if value == key:
                return device
        return None
