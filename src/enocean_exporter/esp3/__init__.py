"""
ESP3 serial transport and radio telegram decoding.

These modules stand in for the gateway driver: a streaming frame parser with
CRC8 checks, a pyserial-backed port, and a decoder that classifies frames into
radio packets.
"""

from .frames import Esp3Frame, FrameParser, crc8, encode_frame
from .packet import Address, OtherPacket, Packet, PacketType, RadioErp1, Rorg, decode_packet
from .port import EnOceanPort, SerialSettings

__all__ = [
    "Esp3Frame",
    "FrameParser",
    "crc8",
    "encode_frame",
    "Address",
    "OtherPacket",
    "Packet",
    "PacketType",
    "RadioErp1",
    "Rorg",
    "decode_packet",
    "EnOceanPort",
    "SerialSettings",
]
