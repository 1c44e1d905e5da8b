import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import metrics
from .config import FalConfig
from .fal import FalClient
from .pipeline import AnimationGateway, RestorationGateway, UploadGateway, pipeline_router

load_dotenv()

logger = logging.getLogger(__name__)


def create_app(config: Optional[FalConfig] = None, fal_client: Optional[FalClient] = None) -> FastAPI:
    """
    Build the API. The same FalConfig is handed to every gateway; pass a
    FalClient to reuse (or fake) the provider connection.
    """
    config = config or FalConfig.from_env()
    fal_client = fal_client or FalClient(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"RestoreFlow starting up (fal_key_set={config.has_key})")
        if not config.has_key:
            logger.warning("FAL_KEY is not set, every pipeline route will answer 500")
        yield
        logger.info("RestoreFlow shutting down...")
        await fal_client.aclose()

    app = FastAPI(title="RestoreFlow", lifespan=lifespan)
    app.state.config = config
    app.state.upload_gateway = UploadGateway(config, fal_client)
    app.state.restoration_gateway = RestorationGateway(config, fal_client)
    app.state.animation_gateway = AnimationGateway(config, fal_client)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies get the same envelope as every other failure."""
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        route = request.url.path.rsplit("/", 1)[-1].replace("-", "_")
        metrics.record_error(route, "RequestValidationError", "Invalid request body")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/health")
    def health_check():
        """Verify the API is running and the provider credential is configured."""
        return {
            "status": "ok",
            "fal_key_set": config.has_key,
        }

    @app.get("/metrics")
    def metrics_endpoint():
        """Return a snapshot of all API metrics."""
        return metrics.get_snapshot()

    app.include_router(pipeline_router)
    return app


app = create_app()


def run(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False):
    logging.basicConfig(level=logging.INFO)
    host = host or os.environ.get("HOST", "0.0.0.0")
    port = port or int(os.environ.get("PORT", 8000))
    uvicorn.run("restoreflow.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()
