"""
HTTP client for the RestoreFlow API, used by the client-side workflow.

Each call returns only the reference the workflow needs and turns every kind of
failure (error envelope, network error, missing output) into a RestoreFlowError
whose message can be shown to the user as-is.
"""

import logging
from typing import Optional

import httpx

from ..errors import EmptyResult, MissingInput, UpstreamFailure
from .models import SourceImage

logger = logging.getLogger(__name__)


class RestoreFlowClient:
    """
    Usage:
        async with httpx.AsyncClient(base_url="http://localhost:8000", timeout=None) as http:
            api = RestoreFlowClient(http)
            url = await api.upload(image)
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def _post(self, path: str, fallback_message: str, **kwargs) -> dict:
        try:
            resp = await self._http.post(path, **kwargs)
            result = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"POST {path} failed: {e}")
            raise UpstreamFailure(fallback_message) from e

        if not isinstance(result, dict) or not result.get("success"):
            message = (result.get("error") if isinstance(result, dict) else None) or fallback_message
            if resp.status_code == 400:
                raise MissingInput(message)
            raise UpstreamFailure(message)
        return result

    async def upload(self, image: SourceImage) -> str:
        """POST /api/upload → stored image URL."""
        result = await self._post(
            "/api/upload",
            "Failed to upload image",
            files={"file": (image.file_name, image.content, image.content_type)},
        )
        url = result.get("url")
        if not url:
            raise EmptyResult("Failed to upload image")
        return url

    async def restore(self, image_url: str, prompt: Optional[str] = None) -> str:
        """POST /api/restore → URL of the first restored image."""
        result = await self._post(
            "/api/restore",
            "Failed to restore photo",
            json={"imageUrl": image_url, "prompt": prompt or None},
        )
        images = (result.get("data") or {}).get("images") or []
        if not images or not isinstance(images[0], dict) or not images[0].get("url"):
            raise EmptyResult("No restored image received")
        return images[0]["url"]

    async def generate_video(
        self,
        image_url: str,
        prompt: Optional[str] = None,
        duration: str = "5",
    ) -> str:
        """POST /api/generate-video → video URL."""
        result = await self._post(
            "/api/generate-video",
            "Failed to generate video",
            json={"imageUrl": image_url, "prompt": prompt or None, "duration": duration},
        )
        video = (result.get("data") or {}).get("video") or {}
        if not video.get("url"):
            raise EmptyResult("No video URL received")
        return video["url"]
