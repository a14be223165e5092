from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator

SYNC_BYTE = 0x55
HEADER_LEN = 4


@dataclass(frozen=True)
class Esp3Frame:
    packet_type: int
    data: bytes
    optional: bytes = b""


def crc8(data: bytes, poly: int = 0x07, init: int = 0x00) -> int:
    crc = init
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = (crc << 1) ^ poly
            else:
                crc <<= 1
            crc &= 0xFF
    return crc


def encode_frame(frame: Esp3Frame) -> bytes:
    header = struct.pack(">HBB", len(frame.data), len(frame.optional), frame.packet_type)
    body = frame.data + frame.optional
    return bytes([SYNC_BYTE]) + header + bytes([crc8(header)]) + body + bytes([crc8(body)])


class FrameParser:
    """
    Streaming ESP3 frame parser.

    Bytes are buffered until a sync byte, a CRC-valid header and the full
    data/optional section plus CRC are available. A bad header CRC drops only
    the sync byte so the parser can resynchronise on the next 0x55; a bad data
    CRC drops the whole frame.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._stats: Dict[str, int] = {"frames": 0, "header_crc_errors": 0, "data_crc_errors": 0}
        self._log = logging.getLogger(__name__)

    def feed(self, chunk: bytes) -> Iterator[Esp3Frame]:
        if chunk:
            self._buffer.extend(chunk)
        yield from self._extract_frames()

    def parse(self, chunks: Iterable[bytes]) -> Iterator[Esp3Frame]:
        for chunk in chunks:
            if not chunk:
                continue
            yield from self.feed(chunk)

    def _extract_frames(self) -> Iterator[Esp3Frame]:
        while True:
            start = self._buffer.find(SYNC_BYTE)
            if start < 0:
                self._buffer.clear()
                break
            if start:
                del self._buffer[:start]
            if len(self._buffer) < 1 + HEADER_LEN + 1:
                break
            header = bytes(self._buffer[1 : 1 + HEADER_LEN])
            crc_header = self._buffer[1 + HEADER_LEN]
            if crc8(header) != crc_header:
                self._stats["header_crc_errors"] += 1
                self._log.debug("Header CRC mismatch (expected=%02X, actual=%02X)", crc_header, crc8(header))
                del self._buffer[:1]
                continue
            data_len, optional_len, packet_type = struct.unpack(">HBB", header)
            body_start = 1 + HEADER_LEN + 1
            frame_end = body_start + data_len + optional_len + 1
            if len(self._buffer) < frame_end:
                break
            body = bytes(self._buffer[body_start : frame_end - 1])
            crc_expected = self._buffer[frame_end - 1]
            crc_actual = crc8(body)
            if crc_actual != crc_expected:
                self._stats["data_crc_errors"] += 1
                self._log.debug("Data CRC mismatch (expected=%02X, actual=%02X)", crc_expected, crc_actual)
                del self._buffer[:frame_end]
                continue
            del self._buffer[:frame_end]
            self._stats["frames"] += 1
            yield Esp3Frame(
                packet_type=packet_type,
                data=body[:data_len],
                optional=body[data_len:],
            )

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def reset(self) -> None:
        self._buffer.clear()
