from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from enocean_exporter import cli
from enocean_exporter.errors import PortError

runner = CliRunner()

VALID = """
port: /dev/ttyFAKE
listen: "127.0.0.1:9100"
devices:
  "01:94:E3:B9": Living Room
"""


class FakePort:
    def __init__(self):
        self.closed = False

    def read_frame(self):
        raise PortError("idle")

    def close(self) -> None:
        self.closed = True


class FakeServer:
    instances: list = []

    def __init__(self, config):
        self.config = config
        self.should_exit = False
        FakeServer.instances.append(self)

    def run(self) -> None:
        pass


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "temperature_exporter.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def forbid_startup(monkeypatch) -> list:
    calls: list = []

    def fake_open(settings):
        calls.append(("port", settings))
        raise AssertionError("serial port must not be opened")

    def fake_server(config):
        calls.append(("server", config))
        raise AssertionError("listener must not be created")

    monkeypatch.setattr(cli.EnOceanPort, "open", staticmethod(fake_open))
    monkeypatch.setattr(cli.uvicorn, "Server", fake_server)
    return calls


def test_malformed_device_address_fails_before_port_and_listener(tmp_path: Path, monkeypatch) -> None:
    calls = forbid_startup(monkeypatch)
    path = write(tmp_path, VALID + '  "garbage": Kitchen\n')
    result = runner.invoke(cli.app, ["--config", str(path)])
    assert result.exit_code == 1
    assert "error:" in result.output
    assert calls == []


def test_non_string_device_name_fails_before_port_and_listener(tmp_path: Path, monkeypatch) -> None:
    calls = forbid_startup(monkeypatch)
    path = write(tmp_path, VALID + '  "0194E3BA": 42\n')
    result = runner.invoke(cli.app, ["--config", str(path)])
    assert result.exit_code == 1
    assert calls == []


def test_missing_config_file(tmp_path: Path, monkeypatch) -> None:
    calls = forbid_startup(monkeypatch)
    result = runner.invoke(cli.app, ["--config", str(tmp_path / "absent.yaml")])
    assert result.exit_code == 1
    assert "not found" in result.output
    assert calls == []


def test_port_open_failure_is_fatal(tmp_path: Path, monkeypatch) -> None:
    def failing_open(settings):
        raise PortError(f"Cannot open serial port {settings.port}: no such device")

    def fake_server(config):
        raise AssertionError("listener must not be created")

    monkeypatch.setattr(cli.EnOceanPort, "open", staticmethod(failing_open))
    monkeypatch.setattr(cli.uvicorn, "Server", fake_server)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    result = runner.invoke(cli.app, ["--config", str(write(tmp_path, VALID))])
    assert result.exit_code == 1
    assert "/dev/ttyFAKE" in result.output


def test_invalid_log_level_option(tmp_path: Path, monkeypatch) -> None:
    forbid_startup(monkeypatch)
    result = runner.invoke(cli.app, ["--config", str(write(tmp_path, VALID)), "--log-level", "chatty"])
    assert result.exit_code != 0


def test_serve_wires_port_worker_and_server(tmp_path: Path, monkeypatch) -> None:
    port = FakePort()
    opened: list = []

    def fake_open(settings):
        opened.append(settings)
        return port

    FakeServer.instances = []
    monkeypatch.setattr(cli.EnOceanPort, "open", staticmethod(fake_open))
    monkeypatch.setattr(cli.uvicorn, "Server", FakeServer)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    result = runner.invoke(cli.app, ["--config", str(write(tmp_path, VALID + "baudrate: 9600\n"))])
    assert result.exit_code == 0, result.output
    assert opened[0].port == "/dev/ttyFAKE"
    assert opened[0].baudrate == 9600
    server = FakeServer.instances[0]
    assert server.config.host == "127.0.0.1"
    assert server.config.port == 9100
    assert port.closed
