from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, Optional

from .errors import ConfigError, StorePoisonedError
from .esp3.packet import Address
from .exporter import render_metrics
from .models import DeviceRecord, Reading

logger = logging.getLogger(__name__)


class TemperatureStore:
    """
    Latest reading per transmitter, shared between the ingestion thread and
    HTTP request threads.

    Every access goes through a single lock. If an exception escapes while the
    lock is held the store is marked poisoned and every later access raises
    StorePoisonedError instead of working on a possibly half-updated mapping.
    """

    def __init__(self, devices: Optional[Mapping[Address, DeviceRecord]] = None):
        self._devices: Dict[Address, DeviceRecord] = dict(devices or {})
        self._lock = threading.Lock()
        self._poisoned_by: Optional[BaseException] = None

    @classmethod
    def with_devices(cls, config_devices: Mapping[Any, Any]) -> "TemperatureStore":
        devices: Dict[Address, DeviceRecord] = {}
        for raw_address, name in config_devices.items():
            if not isinstance(name, str):
                raise ConfigError(f"device name for {raw_address!r} was not a string")
            if not isinstance(raw_address, str):
                raise ConfigError(
                    f"device address {raw_address!r} was not a string (quote it in the config file)"
                )
            try:
                address = Address.parse(raw_address)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc
            if address in devices:
                raise ConfigError(f"duplicate device address {raw_address!r} (already configured as {address})")
            devices[address] = DeviceRecord(name=name)
        return cls(devices)

    @property
    def poisoned(self) -> bool:
        return self._poisoned_by is not None

    @contextmanager
    def _guard(self) -> Iterator[Dict[Address, DeviceRecord]]:
        with self._lock:
            if self._poisoned_by is not None:
                raise StorePoisonedError(
                    "temperature store is poisoned by an earlier failure"
                ) from self._poisoned_by
            try:
                yield self._devices
            except BaseException as exc:
                self._poisoned_by = exc
                logger.critical("Temperature store poisoned: %r", exc)
                raise

    def insert(self, address: Address, temperature: float, timestamp: datetime) -> None:
        with self._guard() as devices:
            previous = devices.get(address)
            name = previous.name if previous is not None else None
            devices[address] = DeviceRecord(name=name, reading=Reading(temperature, timestamp))

    def scrape(self) -> str:
        with self._guard() as devices:
            return render_metrics(devices.items())

    def snapshot(self) -> Dict[Address, DeviceRecord]:
        with self._guard() as devices:
            return dict(devices)

    def __len__(self) -> int:
        with self._guard() as devices:
            return len(devices)
