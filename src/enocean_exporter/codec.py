"""Temperature decoding for EEP A5-02-05 (4BS, 0 °C to 40 °C)."""
from __future__ import annotations

TEMPERATURE_MIN_C = 0.0
TEMPERATURE_MAX_C = 40.0

# DB1 byte index within the 4BS user data (DB3, DB2, DB1, DB0).
TEMPERATURE_BYTE = 2


def decode_temperature(raw: int) -> float:
    """
    Map the DB1 byte of an A5-02-05 telegram to degrees Celsius.

    The profile scales 255..0 linearly onto 0..40 °C (resolution ~0.16 K),
    so byte 0 is 40.0 °C and byte 255 is 0.0 °C.
    """
    if not 0 <= raw <= 0xFF:
        raise ValueError(f"Raw temperature byte out of range: {raw}")
    span = TEMPERATURE_MAX_C - TEMPERATURE_MIN_C
    return TEMPERATURE_MAX_C - raw * span / 255
