"""Pytest fixtures: a fake fal.ai backend and an app wired to it."""

import json
from typing import Dict, Iterator, List

import httpx
import pytest
from fastapi.testclient import TestClient

from restoreflow import metrics
from restoreflow.config import FalConfig
from restoreflow.fal import FalClient
from restoreflow.main import create_app

RESTORE_ENDPOINT = "fal-ai/flux-pro/kontext"
ANIMATE_ENDPOINT = "fal-ai/kling-video/v1.6/pro/image-to-video"

STORED_URL = "https://v3.fal.media/files/abc123.jpg"
RESTORED_URL = "https://v3.fal.media/files/r1.jpg"
VIDEO_URL = "https://v3.fal.media/files/v1.mp4"


class FakeFal:
    """
    In-memory stand-in for the fal.ai queue and storage APIs, used as an
    httpx.MockTransport handler. Every request is recorded.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.file_url = STORED_URL
        self.statuses = ["IN_QUEUE", "IN_PROGRESS", "COMPLETED"]
        self.results: Dict[str, dict] = {
            RESTORE_ENDPOINT: {
                "images": [{"url": RESTORED_URL, "width": 1024, "height": 768, "content_type": "image/jpeg"}],
                "prompt": "echoed prompt",
                "seed": 42,
            },
            ANIMATE_ENDPOINT: {"video": {"url": VIDEO_URL}},
        }
        self.failing: Dict[str, int] = {}  # endpoint or "storage" → status code
        self._jobs: Dict[str, tuple] = {}

    # ── Inspection helpers ───────────────────────────────────────────────

    def submissions(self, endpoint: str) -> List[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.host == "queue.fal.run" and r.url.path == f"/{endpoint}"
        ]

    def provider_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host in ("queue.fal.run", "rest.alpha.fal.ai")]

    # ── Transport ────────────────────────────────────────────────────────

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path

        if host == "rest.alpha.fal.ai" and path == "/storage/upload/initiate":
            if "storage" in self.failing:
                return httpx.Response(self.failing["storage"], json={"detail": "storage down"})
            return httpx.Response(200, json={
                "upload_url": "https://upload.fal.test/put/abc123",
                "file_url": self.file_url,
            })

        if host == "upload.fal.test":
            return httpx.Response(200)

        if host == "queue.fal.run" and request.method == "POST":
            endpoint = path.lstrip("/")
            if endpoint in self.failing:
                return httpx.Response(self.failing[endpoint], json={"detail": "model error"})
            request_id = f"req-{len(self._jobs) + 1}"
            self._jobs[request_id] = (endpoint, iter(list(self.statuses)))
            return httpx.Response(200, json={"request_id": request_id})

        if host == "queue.fal.run" and request.method == "GET":
            # /{owner}/{app}/requests/{request_id}[/status]
            parts = path.strip("/").split("/")
            endpoint, statuses = self._jobs[parts[3]]
            if parts[-1] == "status":
                status = next(statuses, "COMPLETED")
                body = {"status": status}
                if status == "IN_QUEUE":
                    body["queue_position"] = 0
                if status == "IN_PROGRESS":
                    body["logs"] = [{"message": "denoising"}, {"message": "decoding"}]
                return httpx.Response(200, json=body)
            return httpx.Response(200, json=self.results[endpoint])

        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture(autouse=True)
def reset_metrics() -> Iterator[None]:
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def fake_fal() -> FakeFal:
    return FakeFal()


@pytest.fixture
def config() -> FalConfig:
    return FalConfig(fal_key="test-key", poll_interval=0)


@pytest.fixture
def fal_client(config: FalConfig, fake_fal: FakeFal) -> FalClient:
    return FalClient(config, http=httpx.AsyncClient(transport=httpx.MockTransport(fake_fal)))


@pytest.fixture
def app(config: FalConfig, fal_client: FalClient):
    return create_app(config, fal_client)


@pytest.fixture
def client(app) -> TestClient:
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def unconfigured_client(fake_fal: FakeFal) -> TestClient:
    """App whose FalConfig has no credential."""
    config = FalConfig(fal_key=None, poll_interval=0)
    fal = FalClient(config, http=httpx.AsyncClient(transport=httpx.MockTransport(fake_fal)))
    return TestClient(create_app(config, fal))
