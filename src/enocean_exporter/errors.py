"""Exception hierarchy shared by the exporter components."""
from __future__ import annotations


class ExporterError(Exception):
    """Base class for all errors raised by enocean_exporter."""


class ConfigError(ExporterError, ValueError):
    """Invalid or unreadable startup configuration."""


class PortError(ExporterError):
    """Opening or reading the serial port failed."""


class PortTimeout(PortError):
    """No complete frame arrived within the serial read timeout."""


class DecodeError(ExporterError, ValueError):
    """A frame could not be decoded into a packet."""


class StorePoisonedError(ExporterError, RuntimeError):
    """The temperature store was left in an unknown state by a failed critical section."""
