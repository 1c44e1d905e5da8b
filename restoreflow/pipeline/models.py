"""
Pydantic models and enums for the restoration pipeline.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# ── Workflow Stage ───────────────────────────────────────────────────────────

class Stage(str, Enum):
    EMPTY = "empty"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    RESTORING = "restoring"
    RESTORED = "restored"
    ANIMATING = "animating"
    ANIMATED = "animated"


BUSY_STAGES = {Stage.UPLOADING, Stage.RESTORING, Stage.ANIMATING}


# ── Source Image ─────────────────────────────────────────────────────────────

class SourceImage(BaseModel):
    """A user-selected file, held in memory only."""
    content: bytes = Field(repr=False)
    content_type: str = ""
    file_name: str = "image"

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


# ── Gateway Results ──────────────────────────────────────────────────────────

class RestoredImage(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    content_type: Optional[str] = None


class RestorationResult(BaseModel):
    images: list[RestoredImage] = Field(default_factory=list)
    prompt: str = ""
    request_id: str = ""
    data: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def first_url(self) -> Optional[str]:
        return self.images[0].url if self.images else None


class AnimationResult(BaseModel):
    video_url: str
    request_id: str = ""
    data: dict[str, Any] = Field(default_factory=dict, repr=False)


# ── API Request Models ───────────────────────────────────────────────────────
# imageUrl is optional here so a missing reference reaches the gateway and is
# answered with the 400 envelope rather than a schema error.

class RestoreRequest(BaseModel):
    imageUrl: Optional[str] = None
    prompt: Optional[str] = None


class GenerateVideoRequest(BaseModel):
    imageUrl: Optional[str] = None
    prompt: Optional[str] = None
    duration: Optional[str] = Field(None, description="Clip length in seconds, e.g. '5' or '10'")


# ── API Response Models ──────────────────────────────────────────────────────

class UploadResponse(BaseModel):
    success: bool = True
    url: str


class RestoreResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    requestId: str


class VideoResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    requestId: str


class ErrorResponse(BaseModel):
    error: str


# ── Workflow State ───────────────────────────────────────────────────────────

class WorkflowState(BaseModel):
    """Everything the client workflow knows about the current session."""
    stage: Stage = Stage.EMPTY
    error: Optional[str] = None
    restore_prompt: str = ""
    animate_prompt: str = ""
    source_image: Optional[SourceImage] = None
    image_url: Optional[str] = None
    restored_image_url: Optional[str] = None
    video_url: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.stage in BUSY_STAGES
