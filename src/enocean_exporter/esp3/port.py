from __future__ import annotations

import collections
import logging
from dataclasses import dataclass
from typing import Deque, Dict

import serial

from ..errors import PortError, PortTimeout
from .frames import Esp3Frame, FrameParser

logger = logging.getLogger(__name__)


@dataclass
class SerialSettings:
    port: str
    baudrate: int = 57600
    timeout: float = 1.0


class EnOceanPort:
    """Serial connection to an ESP3 gateway yielding one CRC-valid frame per read."""

    def __init__(self, handle, settings: SerialSettings):
        self._serial = handle
        self.settings = settings
        self.parser = FrameParser()
        self._pending: Deque[Esp3Frame] = collections.deque()
        self._read_errors = 0

    @classmethod
    def open(cls, settings: SerialSettings) -> "EnOceanPort":
        try:
            handle = serial.Serial(
                port=settings.port,
                baudrate=settings.baudrate,
                timeout=settings.timeout,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise PortError(f"Cannot open serial port {settings.port}: {exc}") from exc
        logger.info("Port %s opened.", settings.port, extra={"port": settings.port})
        return cls(handle, settings)

    def read_frame(self) -> Esp3Frame:
        """
        Block until a complete frame is available.

        Raises PortTimeout when the serial timeout elapses without completing
        a frame and PortError when the device itself fails.
        """
        while not self._pending:
            try:
                waiting = self._serial.in_waiting
                chunk = self._serial.read(waiting or 1)
            except (serial.SerialException, OSError) as exc:
                self._read_errors += 1
                raise PortError(f"Read from {self.settings.port} failed: {exc}") from exc
            if not chunk:
                raise PortTimeout(f"No frame from {self.settings.port} within {self.settings.timeout}s")
            self._pending.extend(self.parser.feed(chunk))
        return self._pending.popleft()

    def stats(self) -> Dict[str, int]:
        stats = self.parser.stats()
        stats["read_errors"] = self._read_errors
        return stats

    def close(self) -> None:
        try:
            # Wake a reader blocked in read() before the fd goes away
            cancel_read = getattr(self._serial, "cancel_read", None)
            if cancel_read is not None:
                cancel_read()
            self._serial.close()
        except (serial.SerialException, OSError) as exc:
            logger.debug("Error closing %s: %s", self.settings.port, exc)
