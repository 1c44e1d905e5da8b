"""
FastAPI routes for the restoration pipeline.

Endpoints:
  POST /api/upload          Store a photo with the provider, return its URL
  POST /api/restore         Restore / colorize an uploaded photo
  POST /api/generate-video  Animate a restored photo into a short video

Every failure is answered with {"error": "<message>"} and a 400/500 status.
"""

import time
import logging
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse

from .. import metrics
from ..errors import RestoreFlowError
from .models import (
    ErrorResponse,
    GenerateVideoRequest,
    RestoreRequest,
    RestoreResponse,
    UploadResponse,
    VideoResponse,
)

logger = logging.getLogger(__name__)

pipeline_router = APIRouter(prefix="/api", tags=["pipeline"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def error_response(route: str, exc: Exception, fallback_message: str) -> JSONResponse:
    """Normalize any failure into the JSON error envelope."""
    if isinstance(exc, RestoreFlowError):
        status_code, message = exc.status_code, exc.message
    else:
        status_code, message = 500, fallback_message

    logger.error(f"Error in /api/{route}: {exc}", exc_info=status_code >= 500)
    metrics.record_error(route, type(exc).__name__, message)
    return JSONResponse(status_code=status_code, content={"error": message})


# ── A. Upload ────────────────────────────────────────────────────────────────

@pipeline_router.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
async def upload_photo(request: Request, file: Optional[UploadFile] = File(None)):
    """Upload a photo to provider storage."""
    started = time.time()
    metrics.inc_counter("requests.upload")
    try:
        content = await file.read() if file is not None else None
        url = await request.app.state.upload_gateway.upload(
            content,
            content_type=(file.content_type if file is not None else None) or "application/octet-stream",
            file_name=(file.filename if file is not None else None) or "upload",
        )
        return UploadResponse(url=url)
    except Exception as e:
        return error_response("upload", e, "Failed to upload file")
    finally:
        metrics.record_latency("upload", (time.time() - started) * 1000)


# ── B. Restore ───────────────────────────────────────────────────────────────

@pipeline_router.post("/restore", response_model=RestoreResponse, responses=ERROR_RESPONSES)
async def restore_photo(request: Request, body: RestoreRequest):
    """
    Restore an uploaded photo.

    The provider payload is relayed as `data`:
      { images: [{url, width, height, content_type}], prompt, ... }
    """
    started = time.time()
    metrics.inc_counter("requests.restore")
    try:
        result = await request.app.state.restoration_gateway.restore(body.imageUrl, body.prompt)
        return RestoreResponse(data=result.data, requestId=result.request_id)
    except Exception as e:
        return error_response("restore", e, "Failed to restore photo")
    finally:
        metrics.record_latency("restore", (time.time() - started) * 1000)


# ── C. Generate Video ────────────────────────────────────────────────────────

@pipeline_router.post("/generate-video", response_model=VideoResponse, responses=ERROR_RESPONSES)
async def generate_video(request: Request, body: GenerateVideoRequest):
    """
    Animate a restored photo.

    The provider payload is relayed as `data`: { video: {url, ...} }
    """
    started = time.time()
    metrics.inc_counter("requests.generate_video")
    try:
        result = await request.app.state.animation_gateway.animate(
            body.imageUrl, body.prompt, body.duration,
        )
        return VideoResponse(data=result.data, requestId=result.request_id)
    except Exception as e:
        return error_response("generate_video", e, "Failed to generate video")
    finally:
        metrics.record_latency("generate_video", (time.time() - started) * 1000)
