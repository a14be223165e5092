from __future__ import annotations

from datetime import datetime, timezone

from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST

from enocean_exporter.esp3.packet import Address
from enocean_exporter.store import TemperatureStore
from enocean_exporter.web import create_app

NOW = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_metrics_endpoint_serves_exposition_text():
    store = TemperatureStore.with_devices({"01:94:E3:B9": "Living Room"})
    client = TestClient(create_app(store, "/dev/ttyUSB0"))

    response = client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "enocean_temperature_celsius{" not in response.text

    store.insert(Address.parse("01:94:E3:B9"), 21.5, NOW)
    response = client.get("/metrics")
    assert (
        'enocean_temperature_celsius{address="01:94:E3:B9",name="Living Room"} 21.5 1700000000000'
        in response.text
    )


def test_home_page_names_port_and_links_metrics():
    client = TestClient(create_app(TemperatureStore(), "/dev/tty<USB0>"))
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "port /dev/tty&lt;USB0&gt;" in response.text
    assert 'href="/metrics"' in response.text


def test_unknown_path_returns_404():
    client = TestClient(create_app(TemperatureStore(), "/dev/ttyUSB0"))
    assert client.get("/nope").status_code == 404


def test_poisoned_store_triggers_fatal_hook(monkeypatch):
    store = TemperatureStore()
    fatal: list = []

    def broken_render(records):
        raise RuntimeError("formatter crashed")

    monkeypatch.setattr("enocean_exporter.store.render_metrics", broken_render)
    client = TestClient(create_app(store, "/dev/ttyUSB0", on_fatal=fatal.append), raise_server_exceptions=False)
    assert client.get("/metrics").status_code == 500
    assert store.poisoned
    assert fatal == []

    response = client.get("/metrics")
    assert response.status_code == 500
    assert len(fatal) == 1
