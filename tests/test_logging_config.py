from __future__ import annotations

import logging

from enocean_exporter.logging_config import ContextualFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("enocean_exporter.worker", logging.INFO, __file__, 1, "Recorded %.2f °C", (21.5,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys():
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")
    line = formatter.format(make_record(address="01:94:E3:B9", rorg="BS4", unrelated="x"))
    assert line == "INFO Recorded 21.50 °C | address=01:94:E3:B9 rorg=BS4"


def test_formatter_without_context_is_plain():
    formatter = ContextualFormatter(fmt="%(message)s")
    assert formatter.format(make_record()) == "Recorded 21.50 °C"
