from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("temperature_exporter.yaml")


@dataclass(frozen=True)
class ListenAddress:
    host: str
    port: int

    @staticmethod
    def parse(text: str) -> "ListenAddress":
        """Parse ``host:port`` where host is an IP literal, IPv6 in brackets."""
        host, sep, raw_port = text.strip().rpartition(":")
        if not sep or not host:
            raise ValueError(f"listen address '{text}' must be host:port")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
            version = 6
        else:
            version = 4
        try:
            ip = ipaddress.ip_address(host)
        except ValueError as exc:
            raise ValueError(f"listen address '{text}' has an invalid IP '{host}'") from exc
        if ip.version != version:
            raise ValueError(f"listen address '{text}' must bracket IPv6 hosts")
        if not raw_port.isdigit() or not 0 <= int(raw_port) <= 65535:
            raise ValueError(f"listen address '{text}' has an invalid port '{raw_port}'")
        return ListenAddress(host=str(ip), port=int(raw_port))

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass
class ExporterConfig:
    port: str
    listen: ListenAddress
    devices: Dict[Any, Any] = field(default_factory=dict)
    baudrate: int = 57600
    log_level: str = "INFO"

    @staticmethod
    def from_mapping(data: Any) -> "ExporterConfig":
        if not isinstance(data, dict):
            raise ConfigError("configuration document must be a mapping")
        port = data.get("port")
        if not isinstance(port, str) or not port.strip():
            raise ConfigError("port name not found in config")
        listen_raw = data.get("listen")
        if not isinstance(listen_raw, str):
            raise ConfigError("listen was not a string")
        try:
            listen = ListenAddress.parse(listen_raw)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        devices = data.get("devices")
        if not isinstance(devices, dict):
            raise ConfigError("devices is not a table")
        baudrate = data.get("baudrate", 57600)
        if isinstance(baudrate, bool) or not isinstance(baudrate, int) or baudrate <= 0:
            raise ConfigError(f"baudrate must be a positive integer, got {baudrate!r}")
        log_level = data.get("log_level", "INFO")
        if not isinstance(log_level, str):
            raise ConfigError("log_level was not a string")
        return ExporterConfig(
            port=port.strip(),
            listen=listen,
            devices=devices,
            baudrate=baudrate,
            log_level=log_level.upper(),
        )


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> ExporterConfig:
    """
    Load the exporter configuration from YAML.

    Device entries are kept as parsed; they are validated when the
    temperature store is built from them.
    """
    config_path = Path(path)
    try:
        data = _load_yaml(config_path)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {config_path}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse config file {config_path}: {exc}") from exc
    return ExporterConfig.from_mapping(data)
