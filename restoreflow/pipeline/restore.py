"""
Restoration Gateway: FLUX Kontext via fal.ai.

Colorizes and cleans up an uploaded photo. The call waits for the provider queue
to finish; only the prompt is caller-controlled, the remaining model parameters
come from the restore preset.
"""

import logging
from typing import Optional

from ..config import FalConfig
from ..errors import ConfigurationError, EmptyResult, MissingInput, UpstreamFailure
from ..fal import FalClient, QueueCallback, QueueUpdate
from ..presets import RESTORE, get_preset, get_prompt
from .models import RestorationResult, RestoredImage

logger = logging.getLogger(__name__)


def _log_progress(update: QueueUpdate):
    if update.status == "IN_PROGRESS":
        logger.info(f"Processing: {', '.join(update.messages)}")


class RestorationGateway:

    def __init__(self, config: FalConfig, client: Optional[FalClient] = None):
        self.config = config
        self.client = client or FalClient(config)
        self.preset = get_preset(RESTORE)

    def build_arguments(self, image_url: str, prompt: Optional[str] = None) -> dict:
        return {
            "prompt": get_prompt(RESTORE, prompt),
            "image_url": image_url,
            **self.preset["params"],
        }

    async def restore(
        self,
        image_url: Optional[str],
        prompt: Optional[str] = None,
        on_progress: Optional[QueueCallback] = None,
    ) -> RestorationResult:
        """
        Restore a photo.

        Args:
            image_url:   Reference returned by the Upload Gateway.
            prompt:      Optional instruction; the preset default applies when empty.
            on_progress: Optional queue progress callback. Defaults to logging.

        Returns:
            RestorationResult with at least one image.
        """
        if not image_url:
            raise MissingInput("Image URL is required")
        if not self.config.has_key:
            raise ConfigurationError()

        arguments = self.build_arguments(image_url, prompt)

        try:
            result = await self.client.subscribe(
                self.preset["endpoint"],
                arguments,
                on_queue_update=on_progress or _log_progress,
            )
        except Exception as e:
            logger.error(f"Restoration failed for {image_url}: {e}")
            raise UpstreamFailure("Failed to restore photo") from e

        images = [
            RestoredImage.model_validate(img)
            for img in result.data.get("images") or []
            if isinstance(img, dict) and img.get("url")
        ]
        if not images:
            raise EmptyResult("No restored image received")

        logger.info(f"Restored {image_url} → {images[0].url} (request_id={result.request_id})")
        return RestorationResult(
            images=images,
            prompt=result.data.get("prompt") or arguments["prompt"],
            request_id=result.request_id,
            # Entries without a url are dropped from the relayed payload.
            data={**result.data, "images": [img.model_dump(exclude_none=True) for img in images]},
        )
