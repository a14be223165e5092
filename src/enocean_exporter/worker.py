from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from .codec import TEMPERATURE_BYTE, decode_temperature
from .errors import DecodeError, PortError, StorePoisonedError
from .esp3.frames import Esp3Frame
from .esp3.packet import RadioErp1, Rorg, decode_packet
from .store import TemperatureStore

logger = logging.getLogger(__name__)

# 4BS telegrams carry the A5-02-05 temperature payload.
SENSOR_RORG = Rorg.BS4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionWorker(threading.Thread):
    """
    Reads ESP3 frames from the port and records 4BS temperatures in the store.

    Read and decode failures are counted and skipped without delay. A
    poisoned store (or any unexpected exception) ends the loop and is handed
    to ``on_fatal``.
    """

    def __init__(
        self,
        port,
        store: TemperatureStore,
        clock: Callable[[], datetime] = utcnow,
        on_fatal: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        super().__init__(name="enocean-ingestion", daemon=True)
        self.port = port
        self.store = store
        self.clock = clock
        self.on_fatal = on_fatal
        self.fatal_error: Optional[BaseException] = None
        self._stop_event = threading.Event()
        self._stats: Dict[str, int] = {
            "frames": 0,
            "read_errors": 0,
            "decode_errors": 0,
            "inserted": 0,
            "ignored": 0,
        }

    def run(self) -> None:
        logger.info("Ingestion worker started")
        try:
            while not self._stop_event.is_set():
                try:
                    frame = self.port.read_frame()
                except PortError as exc:
                    self._stats["read_errors"] += 1
                    logger.debug("Frame read failed: %s", exc)
                    continue
                self.process_frame(frame)
        except StorePoisonedError as exc:
            self._fail(exc)
        except Exception as exc:
            if self._stop_event.is_set():
                # The port was closed under a pending read during shutdown
                logger.debug("Ingestion worker read interrupted by stop: %r", exc)
            else:
                logger.exception("Unexpected error in ingestion worker")
                self._fail(exc)
        finally:
            logger.info("Ingestion worker stopped (%s)", self._format_stats())

    def process_frame(self, frame: Esp3Frame) -> bool:
        """Decode one frame and store its temperature; returns True when a reading was inserted."""
        self._stats["frames"] += 1
        logger.debug("Frame: %r", frame, extra={"packet_type": frame.packet_type})
        try:
            packet = decode_packet(frame)
        except DecodeError as exc:
            self._stats["decode_errors"] += 1
            logger.warning("Cannot decode: %s", exc, extra={"packet_type": frame.packet_type})
            return False

        if not isinstance(packet, RadioErp1) or packet.rorg is not SENSOR_RORG:
            self._stats["ignored"] += 1
            return False

        temperature = decode_temperature(packet.user_data[TEMPERATURE_BYTE])
        timestamp = self.clock()
        self.store.insert(packet.sender_id, temperature, timestamp)
        self._stats["inserted"] += 1
        logger.debug(
            "Recorded %.2f °C",
            temperature,
            extra={"address": str(packet.sender_id), "rorg": packet.rorg.name},
        )
        return True

    def stop(self) -> None:
        self._stop_event.set()
        close = getattr(self.port, "close", None)
        if close is not None:
            close()

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def _fail(self, exc: BaseException) -> None:
        self.fatal_error = exc
        logger.critical("Ingestion stopped on fatal error: %s", exc)
        if self.on_fatal is not None:
            self.on_fatal(exc)

    def _format_stats(self) -> str:
        return " ".join(f"{key}={value}" for key, value in self._stats.items())
