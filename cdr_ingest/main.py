from __future__ import annotations

import asyncio
import logging
import signal
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import AppConfig, parse_args
from .api import routes_records, routes_upload
from .storage.db import create_tables, init_engine_and_sessionmaker
from .storage.writer import UsageRecordWriter

logger = logging.getLogger("cdr_ingest")


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(title="CDR Usage Ingest")

    # Basic CORS for the upload UI; can tighten later.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(routes_upload.router)
    app.include_router(routes_records.router)

    app.state.app_config = config
    return app


async def _run_uvicorn(app: FastAPI, config: AppConfig, shutdown_event: asyncio.Event) -> None:
    """Run Uvicorn server until shutdown_event is set."""
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.web_host,
            port=config.web_port,
            log_level=config.log_level,
            loop="asyncio",
        )
    )

    async def serve() -> None:
        logger.info("Starting HTTP server on %s:%s", config.web_host, config.web_port)
        await server.serve()

    server_task = asyncio.create_task(serve(), name="uvicorn-server")

    await shutdown_event.wait()
    logger.info("Shutdown event received, stopping HTTP server...")
    server.should_exit = True
    await server_task


async def main_async(config: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine, SessionLocal = init_engine_and_sessionmaker(config.database_url)
    create_tables(engine)

    app = create_app(config)
    app.state.db_engine = engine
    app.state.db_sessionmaker = SessionLocal
    app.state.record_writer = UsageRecordWriter(engine)
    logger.info("Batch size %d, in-memory upload limit %d bytes", config.batch_size, config.upload_max_bytes)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    try:
        await _run_uvicorn(app, config, shutdown_event)
    finally:
        engine.dispose()


def cli(argv: Optional[list[str]] = None) -> None:
    """Console entrypoint defined in pyproject."""
    config = parse_args(argv)
    asyncio.run(main_async(config))


def main() -> None:
    """Entrypoint for `python -m cdr_ingest`."""
    cli()


if __name__ == "__main__":
    main()
