from __future__ import annotations

import contextlib
import logging
import typing as t

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from musicboxd_cache.monitoring.metrics import collect_registry_metrics, render_text

from .registry import CacheRegistry

_logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def cache_lifespan(registry: CacheRegistry) -> t.AsyncIterator[CacheRegistry]:
    """Tie the registry to an ASGI application's lifetime.

    The host application keeps its own routes; this only guarantees that
    the caches and their sweepers are torn down when the server stops.
    """
    _logger.info("Caches ready: %s", ", ".join(name for name, _ in registry))
    try:
        yield registry
    finally:
        registry.destroy()


def build_stats_app(registry: CacheRegistry, debug: bool = False) -> Starlette:
    async def stats(request: Request) -> JSONResponse:
        namespace = request.query_params.get("namespace")
        all_stats = registry.stats()
        if namespace is None:
            return JSONResponse({"namespaces": all_stats})
        if namespace not in all_stats:
            return JSONResponse({"error": f"unknown namespace: {namespace}"}, status_code=404)
        return JSONResponse({"namespaces": {namespace: all_stats[namespace]}})

    async def metrics(request: Request) -> PlainTextResponse:
        collect_registry_metrics(registry)
        return PlainTextResponse(render_text())

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> t.AsyncIterator[None]:
        async with cache_lifespan(registry):
            yield

    return Starlette(
        debug=debug,
        routes=[
            Route("/cache/stats", stats, methods=["GET"]),
            Route("/metrics", metrics, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
