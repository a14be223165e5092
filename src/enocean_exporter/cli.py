"""Command line interface for the EnOcean temperature exporter."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError, PortError
from .esp3.port import EnOceanPort, SerialSettings
from .logging_config import configure_logging
from .store import TemperatureStore
from .web import create_app
from .worker import IngestionWorker

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

app = typer.Typer(add_completion=False, context_settings={"help_option_names": ["-h", "--help"]})


@app.command()
def serve(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to the exporter YAML config."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l", help="Override the configured log level (DEBUG|INFO|WARNING|ERROR)."
    ),
) -> None:
    """Read EnOcean telegrams from the serial port and serve /metrics."""

    if log_level is not None and log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")

    try:
        cfg = load_config(config_path)
        level = (log_level or cfg.log_level).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"unknown log_level '{cfg.log_level}'")
        store = TemperatureStore.with_devices(cfg.devices)
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    configure_logging(level)
    logger.info("Loaded %d configured device(s) from %s", len(store), config_path)

    try:
        port = EnOceanPort.open(SerialSettings(port=cfg.port, baudrate=cfg.baudrate))
    except PortError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    server: Optional[uvicorn.Server] = None

    def on_fatal(exc: BaseException) -> None:
        logger.critical("Shutting down after fatal error: %s", exc)
        if server is not None:
            server.should_exit = True

    web_app = create_app(store, cfg.port, on_fatal=on_fatal)
    server = uvicorn.Server(
        uvicorn.Config(
            web_app,
            host=cfg.listen.host,
            port=cfg.listen.port,
            log_config=None,
        )
    )
    worker = IngestionWorker(port, store, on_fatal=on_fatal)
    worker.start()
    logger.info("Serving metrics on http://%s/metrics", cfg.listen)
    try:
        server.run()
    finally:
        worker.stop()
        worker.join(timeout=5)

    if worker.fatal_error is not None or store.poisoned:
        raise typer.Exit(code=1)


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
