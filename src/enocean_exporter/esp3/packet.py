"""
Decoding of ESP3 frames into radio packets.

Only RADIO_ERP1 telegrams are decoded in full; every other packet type is
surfaced as an :class:`OtherPacket` so callers can dispatch on the variant.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, Union

from ..errors import DecodeError
from .frames import Esp3Frame

ADDRESS_LEN = 4
_ADDRESS_RE = re.compile(r"^(?:0x)?([0-9a-f]{2})(:?)([0-9a-f]{2})\2([0-9a-f]{2})\2([0-9a-f]{2})$", re.IGNORECASE)


class PacketType(enum.IntEnum):
    RADIO_ERP1 = 0x01
    RESPONSE = 0x02
    RADIO_SUB_TEL = 0x03
    EVENT = 0x04
    COMMON_COMMAND = 0x05
    SMART_ACK_COMMAND = 0x06
    REMOTE_MAN_COMMAND = 0x07
    RADIO_MESSAGE = 0x09
    RADIO_ERP2 = 0x0A
    RADIO_802_15_4 = 0x10
    COMMAND_2_4 = 0x11


class Rorg(enum.IntEnum):
    RPS = 0xF6
    BS1 = 0xD5
    BS4 = 0xA5
    VLD = 0xD2
    MSC = 0xD1
    ADT = 0xA6
    SM_LRN_REQ = 0xC6
    SM_LRN_ANS = 0xC7
    SM_REC = 0xA7
    SYS_EX = 0xC5
    SEC = 0x30
    SEC_ENCAPS = 0x31
    UTE = 0xD4


# Fixed user data sizes; the remaining RORGs carry variable-length payloads.
_USER_DATA_LEN: Dict[Rorg, int] = {
    Rorg.RPS: 1,
    Rorg.BS1: 1,
    Rorg.BS4: 4,
}


@dataclass(frozen=True, order=True)
class Address:
    """4-byte EnOcean sender ID, rendered as ``01:94:E3:B9``."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != ADDRESS_LEN:
            raise ValueError(f"Address must be {ADDRESS_LEN} bytes, got {len(self.value)}")

    @classmethod
    def parse(cls, text: str) -> "Address":
        match = _ADDRESS_RE.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid EnOcean address '{text}'")
        hex_digits = "".join(match.group(i) for i in (1, 3, 4, 5))
        return cls(bytes.fromhex(hex_digits))

    def __str__(self) -> str:
        return ":".join(f"{byte:02X}" for byte in self.value)


@dataclass(frozen=True)
class RadioErp1:
    rorg: Rorg
    user_data: bytes
    sender_id: Address
    status: int
    optional: bytes = b""


@dataclass(frozen=True)
class OtherPacket:
    packet_type: PacketType
    data: bytes
    optional: bytes = b""


Packet = Union[RadioErp1, OtherPacket]


def decode_packet(frame: Esp3Frame) -> Packet:
    try:
        packet_type = PacketType(frame.packet_type)
    except ValueError as exc:
        raise DecodeError(f"Unknown packet type 0x{frame.packet_type:02X}") from exc
    if packet_type is not PacketType.RADIO_ERP1:
        return OtherPacket(packet_type=packet_type, data=frame.data, optional=frame.optional)
    return _decode_erp1(frame)


def _decode_erp1(frame: Esp3Frame) -> RadioErp1:
    data = frame.data
    # RORG + sender ID + status
    if len(data) < 1 + ADDRESS_LEN + 1:
        raise DecodeError(f"ERP1 telegram too short ({len(data)} bytes)")
    try:
        rorg = Rorg(data[0])
    except ValueError as exc:
        raise DecodeError(f"Unknown RORG 0x{data[0]:02X}") from exc
    user_data = data[1 : -(ADDRESS_LEN + 1)]
    expected = _USER_DATA_LEN.get(rorg)
    if expected is not None and len(user_data) != expected:
        raise DecodeError(
            f"{rorg.name} telegram carries {len(user_data)} user data bytes, expected {expected}"
        )
    return RadioErp1(
        rorg=rorg,
        user_data=bytes(user_data),
        sender_id=Address(bytes(data[-(ADDRESS_LEN + 1) : -1])),
        status=data[-1],
        optional=frame.optional,
    )
