"""
fal.ai REST client.

Two protocols are used:

  Queue (model inference):
    POST {queue}/{endpoint}                         → { request_id, status_url, response_url }
    GET  {queue}/{app_id}/requests/{id}/status      → { status: IN_QUEUE|IN_PROGRESS|COMPLETED, logs }
    GET  {queue}/{app_id}/requests/{id}             → result payload

  Storage (file upload):
    POST {storage}/storage/upload/initiate          → { upload_url, file_url }
    PUT  {upload_url}  <raw bytes>

subscribe() waits for the queue without a deadline; the caller decides how long
it is willing to wait.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
from pydantic import BaseModel, Field

from .config import FalConfig

logger = logging.getLogger(__name__)

FAILED_STATUSES = {"FAILED", "ERROR", "CANCELLED"}


class FalError(Exception):
    """Raised when fal.ai rejects a request or a queued job fails."""


class QueueLog(BaseModel):
    message: str = ""
    level: Optional[str] = None
    timestamp: Optional[str] = None


class QueueUpdate(BaseModel):
    """One progress event for a queued request."""
    request_id: str
    status: str
    queue_position: Optional[int] = None
    logs: list[QueueLog] = Field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [log.message for log in self.logs]


class FalResult(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
    request_id: str


QueueCallback = Callable[[QueueUpdate], Union[None, Awaitable[None]]]


def app_id(endpoint: str) -> str:
    """
    Queue status/result paths use the owner/app prefix only, e.g.
    'fal-ai/kling-video/v1.6/pro/image-to-video' → 'fal-ai/kling-video'.
    """
    parts = endpoint.strip("/").split("/")
    return "/".join(parts[:2])


class FalClient:
    """
    Thin async wrapper over the fal.ai queue and storage APIs.

    Usage:
        client = FalClient(FalConfig.from_env())
        result = await client.subscribe("fal-ai/flux-pro/kontext", {"prompt": ..., "image_url": ...})
        url = await client.upload(data, "image/jpeg", "cat.jpg")
    """

    def __init__(self, config: FalConfig, http: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._http = http or httpx.AsyncClient(timeout=config.request_timeout)

    def _headers(self) -> dict:
        if not self.config.fal_key:
            raise FalError("FAL_KEY not set")
        return {
            "Authorization": f"Key {self.config.fal_key}",
            "Content-Type": "application/json",
        }

    async def _get_json(self, url: str, **kwargs) -> dict:
        resp = await self._http.get(url, headers=self._headers(), **kwargs)
        resp.raise_for_status()
        return resp.json()

    # ── Queue ────────────────────────────────────────────────────────────

    async def subscribe(
        self,
        endpoint: str,
        arguments: dict,
        on_queue_update: Optional[QueueCallback] = None,
    ) -> FalResult:
        """Submit a request to the queue and wait for its result."""
        base = self.config.queue_base.rstrip("/")
        try:
            submit_resp = await self._http.post(
                f"{base}/{endpoint}", headers=self._headers(), json=arguments,
            )
            submit_resp.raise_for_status()
            submit_data = submit_resp.json()

            request_id = submit_data.get("request_id")
            if not request_id:
                raise FalError(f"No request_id in fal.ai response: {submit_data}")

            logger.info(f"[fal] Queued {endpoint}: request_id={request_id}")

            app_base = f"{base}/{app_id(endpoint)}/requests/{request_id}"
            status_url = submit_data.get("status_url") or f"{app_base}/status"
            response_url = submit_data.get("response_url") or app_base

            while True:
                status_data = await self._get_json(status_url, params={"logs": 1})
                update = QueueUpdate(
                    request_id=request_id,
                    status=status_data.get("status", ""),
                    queue_position=status_data.get("queue_position"),
                    logs=status_data.get("logs") or [],
                )

                if on_queue_update is not None:
                    maybe_awaitable = on_queue_update(update)
                    if asyncio.iscoroutine(maybe_awaitable):
                        await maybe_awaitable

                if update.status == "COMPLETED":
                    if status_data.get("error"):
                        raise FalError(f"fal.ai job failed: {status_data['error']}")
                    data = await self._get_json(response_url)
                    logger.info(f"[fal] Completed {endpoint}: request_id={request_id}")
                    return FalResult(data=data, request_id=request_id)

                if update.status in FAILED_STATUSES:
                    raise FalError(f"fal.ai job failed: {status_data.get('error', 'Unknown error')}")

                # IN_QUEUE or IN_PROGRESS: keep polling
                logger.debug(f"[fal] {request_id} status: {update.status}")
                await asyncio.sleep(self.config.poll_interval)

        except httpx.HTTPError as e:
            raise FalError(f"fal.ai request to {endpoint} failed: {e}") from e

    # ── Storage ──────────────────────────────────────────────────────────

    async def upload(self, content: bytes, content_type: str, file_name: str = "upload") -> str:
        """Upload raw bytes to fal storage and return the public file URL."""
        base = self.config.storage_base.rstrip("/")
        try:
            init_resp = await self._http.post(
                f"{base}/storage/upload/initiate",
                headers=self._headers(),
                json={"content_type": content_type, "file_name": file_name},
            )
            init_resp.raise_for_status()
            init_data = init_resp.json()

            upload_url = init_data.get("upload_url")
            file_url = init_data.get("file_url")
            if not upload_url or not file_url:
                raise FalError(f"Upload initiation returned no URLs: {init_data}")

            put_resp = await self._http.put(
                upload_url, content=content, headers={"Content-Type": content_type},
            )
            put_resp.raise_for_status()

        except httpx.HTTPError as e:
            raise FalError(f"fal.ai storage upload failed: {e}") from e

        logger.info(f"[fal] Uploaded {file_name} ({len(content)} bytes) → {file_url}")
        return file_url

    async def aclose(self):
        await self._http.aclose()
