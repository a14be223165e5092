"""HTTP routes exposing the temperature store."""
from __future__ import annotations

import html
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response

from . import __version__
from .errors import StorePoisonedError
from .exporter import CONTENT_TYPE
from .store import TemperatureStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> TemperatureStore:
    return request.app.state.store


def render_home(port_name: str) -> str:
    port_name = html.escape(port_name)
    return (
        "<html><body><h1>EnOcean Temperature exporter</h1>"
        f"<ul><li>port {port_name}</li><li><a href=\"/metrics\">metrics</a></li></ul>"
        "</body></html>"
    )


@router.get("/metrics", summary="Prometheus exposition of the latest temperatures.")
def metrics(request: Request, store: TemperatureStore = Depends(get_store)) -> Response:
    # Plain ``def`` so FastAPI runs it in its threadpool; scrape() blocks on the store lock.
    try:
        body = store.scrape()
    except StorePoisonedError as exc:
        on_fatal = request.app.state.on_fatal
        if on_fatal is not None:
            on_fatal(exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="temperature store is corrupted",
        ) from exc
    return Response(content=body, media_type=CONTENT_TYPE)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def home(request: Request) -> HTMLResponse:
    return HTMLResponse(request.app.state.home_page)


def create_app(
    store: TemperatureStore,
    port_name: str,
    on_fatal: Optional[Callable[[BaseException], None]] = None,
) -> FastAPI:
    app = FastAPI(
        title="EnOcean Temperature exporter",
        description="Latest EnOcean 4BS temperature readings in Prometheus text format.",
        version=__version__,
    )
    app.state.store = store
    app.state.on_fatal = on_fatal
    app.state.home_page = render_home(port_name)
    app.include_router(router)
    return app
