import asyncio
import logging
import os
import signal
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from aegis.config import DEFAULT_SECRET, Settings
from aegis.database import AppContext
from aegis.errors import install_error_handlers
from aegis.logging_config import setup_logging
from aegis.routers import auth, health, tasks

logger = logging.getLogger(__name__)


def _crash_on_loop_error(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    # an error nobody awaited leaves the process in an unknown state; stop serving
    logger.critical("Unhandled error in event loop: %s", context.get("message"),
                    exc_info=context.get("exception"))
    os.kill(os.getpid(), signal.SIGTERM)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    if settings.jwt_secret == DEFAULT_SECRET and not settings.is_development:
        logger.warning("JWT_SECRET is not set; tokens are signed with the development default")

    context = AppContext(settings)
    context.create_tables()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        asyncio.get_running_loop().set_exception_handler(_crash_on_loop_error)
        logger.info("Aegis API started (%s)", settings.environment)
        yield
        # uvicorn has stopped accepting connections and drained in-flight requests
        context.close()

    app = FastAPI(title="Aegis Task API", version=health.API_VERSION, lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.is_development:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path,
                        response.status_code, (time.perf_counter() - started) * 1000)
            return response

    install_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(tasks.router)
    return app


app = create_app()


def run() -> None:
    settings = app.state.context.settings
    uvicorn.run(
        "aegis.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )


if __name__ == "__main__":
    run()
