import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Environment is loaded by Pydantic Settings (see airlink.core.settings).
from airlink.api import register_routes
from airlink.core.dependencies import build_services
from airlink.core.exceptions import register_exception_handlers
from airlink.core.logging import setup_logging
from airlink.core.settings import Settings, get_settings

# Initialize logging early so all modules inherit the handlers/level
setup_logging(get_settings().resolved_log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    services = app.state.airlink
    if services.settings.session_idle_ttl_seconds > 0:
        services.sweeper.start()
        logger.info(
            "Session sweeper started (ttl=%ss, every %ss)",
            services.settings.session_idle_ttl_seconds,
            services.settings.session_sweep_interval_seconds,
        )
    try:
        yield
    finally:
        await services.sweeper.stop()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title=f"{settings.app_name} API", lifespan=_lifespan)
    app.state.airlink = build_services(settings)
    register_exception_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    # Front-end bundle, when deployed alongside the relay. Mounted last so API routes win.
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving static files from %s", static_dir.resolve())

    logger.info(
        "%s relay initialized (max file %d bytes, %d files/session)",
        settings.app_name,
        settings.max_file_size_bytes,
        settings.max_files_per_session,
    )
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "airlink.main:app",
        host=settings.host,
        port=settings.port,
        ws_max_size=settings.ws_max_message_bytes,
        log_config=None,
    )


if __name__ == "__main__":
    run()
