"""Prometheus exposition for the temperature store."""
from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .esp3.packet import Address
from .models import DeviceRecord

METRIC_NAME = "enocean_temperature_celsius"
METRIC_HELP = "Temperature reported by an EnOcean sensor, in °C"
CONTENT_TYPE = CONTENT_TYPE_LATEST


def build_metric(records: Iterable[Tuple[Address, DeviceRecord]]) -> Metric:
    """One gauge sample per device that has a reading; the rest are skipped."""
    metric = Metric(METRIC_NAME, METRIC_HELP, "gauge")
    for address, record in records:
        reading = record.reading
        if reading is None:
            continue
        labels = {"address": str(address)}
        if record.name is not None:
            labels["name"] = record.name
        # prometheus_client takes seconds and writes integer milliseconds
        metric.add_sample(METRIC_NAME, labels, float(reading.temperature), reading.timestamp.timestamp())
    return metric


class RecordsCollector(Collector):
    """Collector over a fixed set of records, rendered once per scrape."""

    def __init__(self, records: Iterable[Tuple[Address, DeviceRecord]]):
        self._records: List[Tuple[Address, DeviceRecord]] = list(records)

    def collect(self) -> Iterator[Metric]:
        yield build_metric(self._records)


def render_metrics(records: Iterable[Tuple[Address, DeviceRecord]]) -> str:
    registry = CollectorRegistry(auto_describe=False)
    registry.register(RecordsCollector(records))
    return generate_latest(registry).decode("utf-8")
