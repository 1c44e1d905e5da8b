"""
RestorationWorkflow: client-side controller for one restoration session.

Drives the three API routes in order, one user action at a time:

  empty ──select/drop──▶ uploading ──▶ uploaded
        ──restore──────▶ restoring ──▶ restored
        ──animate──────▶ animating ──▶ animated
  any   ──reset────────▶ empty

A failed call leaves the workflow at the last stable stage with `error` set.
Nothing advances on its own and nothing is retried.
"""

import logging
from typing import Callable, Optional, Sequence

from .client import RestoreFlowClient
from ..errors import RestoreFlowError, StageError
from ..presets import ANIMATE, get_preset
from .models import SourceImage, Stage, WorkflowState

logger = logging.getLogger(__name__)

StateListener = Callable[[WorkflowState], None]

INVALID_FILE_MESSAGE = "Please select a valid image file"
UPLOAD_FAILED_MESSAGE = "Failed to upload image"
RESTORE_FAILED_MESSAGE = "Failed to restore photo"
ANIMATE_FAILED_MESSAGE = "Failed to generate video"


def _failure_message(exc: Exception, fallback: str) -> str:
    if isinstance(exc, RestoreFlowError):
        return exc.message
    logger.error(f"Unexpected workflow failure: {exc!r}", exc_info=exc)
    return fallback


class RestorationWorkflow:
    """
    Usage:
        workflow = RestorationWorkflow(RestoreFlowClient(http))
        await workflow.select_file(SourceImage(content=data, content_type="image/jpeg"))
        workflow.set_restore_prompt("Warm, natural colors")
        await workflow.restore()
        await workflow.animate()
        print(workflow.state.video_url)
    """

    def __init__(self, api: RestoreFlowClient, on_change: Optional[StateListener] = None):
        self._api = api
        self._listeners: list[StateListener] = [on_change] if on_change else []
        # Bumped on reset so responses for an abandoned session are dropped.
        self._session = 0
        self.state = WorkflowState()

    # ── State ────────────────────────────────────────────────────────────

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception(f"State listener {listener!r} failed")

    def _update(self, **changes):
        previous = self.state.stage
        self.state = self.state.model_copy(update=changes)
        if self.state.stage != previous:
            logger.info(f"Workflow stage {previous.value} → {self.state.stage.value}")
        if self.state.error and "error" in changes:
            logger.warning(f"Workflow error at {self.state.stage.value}: {self.state.error}")
        self._notify()

    def _require(self, stage: Stage, action: str):
        if self.state.stage != stage:
            raise StageError(f"Cannot {action} while {self.state.stage.value}")

    # ── Controls ─────────────────────────────────────────────────────────

    @property
    def can_select_file(self) -> bool:
        return self.state.stage == Stage.EMPTY

    @property
    def can_restore(self) -> bool:
        return self.state.stage == Stage.UPLOADED

    @property
    def can_animate(self) -> bool:
        return self.state.stage == Stage.RESTORED

    def set_restore_prompt(self, text: str):
        self._update(restore_prompt=text or "")

    def set_animate_prompt(self, text: str):
        self._update(animate_prompt=text or "")

    # ── Actions ──────────────────────────────────────────────────────────

    async def select_file(self, image: SourceImage) -> WorkflowState:
        """Upload a newly selected file. Non-image files only set the error message."""
        self._require(Stage.EMPTY, "select a file")

        if not image.is_image:
            self._update(error=INVALID_FILE_MESSAGE)
            return self.state

        session = self._session
        self._update(
            stage=Stage.UPLOADING,
            error=None,
            source_image=image,
            restored_image_url=None,
        )
        try:
            url = await self._api.upload(image)
        except Exception as e:
            if session == self._session:
                self._update(
                    stage=Stage.EMPTY,
                    source_image=None,
                    image_url=None,
                    error=_failure_message(e, UPLOAD_FAILED_MESSAGE),
                )
            return self.state

        if session == self._session:
            self._update(stage=Stage.UPLOADED, image_url=url)
        return self.state

    async def drop_files(self, files: Sequence[SourceImage]) -> WorkflowState:
        """Handle a drop: the first file is taken if it is an image, anything else is ignored."""
        self._require(Stage.EMPTY, "drop a file")
        if files and files[0].is_image:
            return await self.select_file(files[0])
        return self.state

    async def restore(self) -> WorkflowState:
        """Restore the uploaded photo with the current restore prompt."""
        self._require(Stage.UPLOADED, "restore")

        session = self._session
        self._update(stage=Stage.RESTORING, error=None)
        try:
            url = await self._api.restore(self.state.image_url, self.state.restore_prompt or None)
        except Exception as e:
            if session == self._session:
                self._update(stage=Stage.UPLOADED, error=_failure_message(e, RESTORE_FAILED_MESSAGE))
            return self.state

        if session == self._session:
            self._update(stage=Stage.RESTORED, restored_image_url=url)
        return self.state

    async def animate(self) -> WorkflowState:
        """Generate a video from the restored photo with the current animate prompt."""
        self._require(Stage.RESTORED, "animate")

        session = self._session
        self._update(stage=Stage.ANIMATING, error=None)
        try:
            url = await self._api.generate_video(
                self.state.restored_image_url,
                self.state.animate_prompt or None,
                duration=get_preset(ANIMATE)["duration"],
            )
        except Exception as e:
            if session == self._session:
                self._update(stage=Stage.RESTORED, error=_failure_message(e, ANIMATE_FAILED_MESSAGE))
            return self.state

        if session == self._session:
            self._update(stage=Stage.ANIMATED, video_url=url)
        return self.state

    def reset(self) -> WorkflowState:
        """Start over: clear the image, results, prompts and error."""
        self._session += 1
        previous = self.state.stage
        self.state = WorkflowState()
        logger.info(f"Workflow reset from {previous.value}")
        self._notify()
        return self.state
