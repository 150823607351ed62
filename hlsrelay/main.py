from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from loguru import logger

from hlsrelay._version import __version__
from hlsrelay.api.relay import router as relay_router
from hlsrelay.config import CORS_ALLOW_CREDENTIALS, CORS_ORIGINS, build_settings
from hlsrelay.core.relay import RelaySettings, StreamRelay
from hlsrelay.core.relay.http import ClientFactory
from hlsrelay.cors import apply_cors_middleware
from hlsrelay.utils.logger import config as configure_logger

load_dotenv()
configure_logger()


def create_app(
    settings: RelaySettings | None = None,
    *,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Create the FastAPI app around a StreamRelay built from `settings` (env config by default)."""
    settings = settings or build_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"HLS relay {__version__} starting with {len(settings.providers)} providers, "
            f"provider timeout {settings.provider_timeout}s, manifest timeout {settings.manifest_timeout}s"
        )
        logger.info(f"Target host: {settings.target_host or '<disabled>'}")
        yield
        logger.info("HLS relay shutting down.")

    app = FastAPI(title="HLS Relay", version=__version__, lifespan=lifespan)
    app.state.relay = StreamRelay(settings, client_factory=client_factory)
    apply_cors_middleware(
        app, origins=CORS_ORIGINS, allow_credentials=CORS_ALLOW_CREDENTIALS
    )

    @app.get("/")
    async def index():
        return {
            "message": "HLS relay: resolve a stream id through provider instances",
            "version": __version__,
            "endpoints": {
                "manifest": "/get/{id}",
                "stream_url": "/get/url/{id}",
                "health": "/health",
            },
        }

    # Healthcheck endpoint for CI/CD and monitoring
    @app.get("/health")
    async def healthcheck():
        return {"status": "ok"}

    app.include_router(relay_router)
    return app


app = create_app()


if __name__ == "__main__":
    from hlsrelay.cli import run_server

    run_server(app)
