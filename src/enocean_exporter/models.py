from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Reading:
    """Latest temperature observed for a transmitter and when it was processed."""

    temperature: float
    timestamp: datetime


@dataclass(frozen=True)
class DeviceRecord:
    name: Optional[str] = None
    reading: Optional[Reading] = None
