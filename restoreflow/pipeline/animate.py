"""
Animation Gateway: Kling 1.6 Pro image-to-video via fal.ai.

Turns the restored photo into a short clip. Aspect ratio, negative prompt and
cfg scale are fixed by the animate preset.
"""

import logging
from typing import Optional

from ..config import FalConfig
from ..errors import ConfigurationError, EmptyResult, MissingInput, UpstreamFailure
from ..fal import FalClient, QueueCallback, QueueUpdate
from ..presets import ANIMATE, get_preset, get_prompt
from .models import AnimationResult

logger = logging.getLogger(__name__)


def _log_progress(update: QueueUpdate):
    if update.status == "IN_PROGRESS":
        logger.info(f"Video generation: {', '.join(update.messages)}")


class AnimationGateway:

    def __init__(self, config: FalConfig, client: Optional[FalClient] = None):
        self.config = config
        self.client = client or FalClient(config)
        self.preset = get_preset(ANIMATE)

    def build_arguments(
        self,
        image_url: str,
        prompt: Optional[str] = None,
        duration: Optional[str] = None,
    ) -> dict:
        return {
            "prompt": get_prompt(ANIMATE, prompt),
            "image_url": image_url,
            "duration": duration or self.preset["duration"],
            **self.preset["params"],
        }

    async def animate(
        self,
        image_url: Optional[str],
        prompt: Optional[str] = None,
        duration: Optional[str] = None,
        on_progress: Optional[QueueCallback] = None,
    ) -> AnimationResult:
        """
        Animate a still image into a video.

        Returns:
            AnimationResult with the generated video URL.
        """
        if not image_url:
            raise MissingInput("Image URL is required")
        if not self.config.has_key:
            raise ConfigurationError()

        arguments = self.build_arguments(image_url, prompt, duration)

        try:
            result = await self.client.subscribe(
                self.preset["endpoint"],
                arguments,
                on_queue_update=on_progress or _log_progress,
            )
        except Exception as e:
            logger.error(f"Video generation failed for {image_url}: {e}")
            raise UpstreamFailure("Failed to generate video") from e

        video = result.data.get("video")
        video_url = video.get("url") if isinstance(video, dict) else None
        if not video_url:
            raise EmptyResult("No video URL received")

        logger.info(f"Animated {image_url} → {video_url} (request_id={result.request_id})")
        return AnimationResult(video_url=video_url, request_id=result.request_id, data=result.data)
