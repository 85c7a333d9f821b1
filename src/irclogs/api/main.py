from __future__ import annotations

import asyncio

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from irclogs.api.middleware.exception_handlers import register_exception_handlers
from irclogs.api.routes import ask, health, logs
from irclogs.api.services.admission import AdmissionGate, AskSessionManager
from irclogs.api.services.ask_service import AskService
from irclogs.core.channels import ChannelTree
from irclogs.core.constants import Settings, get_settings
from irclogs.integrations.messages_api import MessagesClient
from irclogs.utils.client_factory import create_http_client
from irclogs.utils.logger import configure_uvicorn_logging, logger

SHUTDOWN_TIMEOUT = 10.0


def _create_ask_manager(settings: Settings, channels: ChannelTree) -> AskSessionManager | None:
    """Build the ask pipeline, or None when no ``ai`` block is configured."""
    ai = settings.ai
    if ai is None:
        logger.info("Ask disabled: no ai configuration")
        return None

    try:
        ai.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        # Sessions still run; saving an answer will fail and be reported then
        logger.error(f"Cannot create ask output dir {ai.output_dir}: {e}")

    http_client = create_http_client(
        enable_logging=settings.http_request_logging,
        read_timeout=ai.http_read_timeout,
    )
    client = MessagesClient(http_client, ai)
    service = AskService(client, channels, ai, base_path=settings.base_path)
    logger.info(f"Ask enabled: model={ai.model}, max_concurrent={ai.max_concurrent}")
    return AskSessionManager(service, AdmissionGate(ai.max_concurrent))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: discover channels, wire the ask pipeline, drain on shutdown."""
    settings: Settings = app.state.settings

    loop = asyncio.get_running_loop()
    app.state.channels = await loop.run_in_executor(None, ChannelTree.discover, settings.logs_dirs)
    app.state.ask_manager = _create_ask_manager(settings, app.state.channels)

    try:
        yield
    finally:
        logger.info("Initiating graceful shutdown sequence")
        manager: AskSessionManager | None = app.state.ask_manager
        if manager is not None:
            await manager.shutdown(timeout=SHUTDOWN_TIMEOUT)
            await manager.service.client.aclose()
            logger.info("Ask sessions drained")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; routes live under ``settings.base_path``."""
    settings = settings or get_settings()

    if settings.debug:
        logger.info(
            f"Settings: app_env={settings.app_env}, logs_dirs={[str(p) for p in settings.logs_dirs]}, "
            f"base_path={settings.base_path!r}, ai_enabled={settings.ai_enabled}"
        )

    # Configure uvicorn logging so access logs match the application log style
    configure_uvicorn_logging()

    prefix = settings.base_path
    app = FastAPI(
        title=settings.site_title,
        description="""
## IRC Logs

Browse archived IRC channel logs and ask questions about them.

### Features
- **Logs**: Channel listing and raw daily logs (plain or zstd-compressed)
- **Ask**: An assistant that searches the logs and streams its progress as Server-Sent Events
""",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoint for monitoring"},
            {"name": "Logs", "description": "Channel listing and raw logs"},
            {"name": "Ask", "description": "Ask sessions and saved answers"},
        ],
        openapi_url=f"{prefix}/openapi.json",
        docs_url=f"{prefix}/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.ask_manager = None

    # Register global exception handlers for consistent error responses
    register_exception_handlers(app)

    app.include_router(health.router, prefix=prefix)
    app.include_router(logs.router, prefix=prefix)
    app.include_router(ask.router, prefix=prefix)

    # Prometheus exposition
    app.mount(f"{prefix}/metrics", make_asgi_app())

    return app
