"""
Roulette Feed Service

Collects roulette results from the external feed, keeps the newest ones in
a bounded ledger persisted to a JSON snapshot, merges submitted patterns,
and pushes new spins to WebSocket subscribers.

Error policy:
- Feed, parse and persistence errors never stop the process
- Exceptions escaping asyncio tasks are logged and the process keeps running
- An uncaught synchronous exception is logged and terminates the process
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.config.settings import settings as shared_settings
from shared.utils.logger import configure_logging

from .config import Settings, settings as default_settings
from .context import ServiceContext
from .errors import PersistenceError
from .routers import patterns_router, spins_router, status_router, websocket_router

logger = structlog.get_logger(__name__)


def _log_async_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error(
        "unhandled_async_exception",
        message=context.get("message"),
        error=repr(exc) if exc else None,
        exc_info=exc,
    )


def _fatal_excepthook(exc_type, exc_value, exc_traceback) -> None:
    logger.critical(
        "fatal_uncaught_exception",
        error=repr(exc_value),
        exc_info=(exc_type, exc_value, exc_traceback),
    )
    # The interpreter exits with status 1 once the hook returns


def create_app(
    settings: Optional[Settings] = None,
    feed_transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Service settings (defaults to the environment-loaded ones)
        feed_transport: Optional httpx transport for the feed client
    """
    settings = settings or default_settings

    # Applies however the app is served (console script or `uvicorn ...:app`)
    sys.excepthook = _fatal_excepthook

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(service_name=settings.service_name)
        asyncio.get_running_loop().set_exception_handler(_log_async_exception)

        logger.info(
            "service_starting",
            port=settings.service_port,
            max_spins=settings.max_spins,
            max_patterns=settings.max_patterns,
            poll_interval_seconds=settings.poll_interval_seconds
        )

        context = ServiceContext.build(settings, feed_transport=feed_transport)
        app.state.context = context
        await context.startup()

        logger.info("service_ready")

        yield

        logger.info("service_stopping")
        await context.shutdown()
        logger.info("shutdown_complete")

    app = FastAPI(
        title="Roulette Feed Service",
        description="Roulette result collection, pattern store and live spin channel",
        version="2.0.0",
        lifespan=lifespan
    )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error("persistence_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"status": "ERROR", "error": "persistence_error", "detail": str(exc)}
        )

    app.include_router(status_router)
    app.include_router(spins_router)
    app.include_router(patterns_router)
    app.include_router(websocket_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point"""
    import uvicorn

    uvicorn.run(
        app,
        host=default_settings.service_host,
        port=default_settings.service_port,
        reload=False,
        log_level=shared_settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
