"""
Provider configuration.

A single FalConfig is built at startup (usually from the environment) and passed
to the FalClient and to each gateway, so nothing reads process state at call time.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

# ── Defaults ─────────────────────────────────────────────────────────────────

FAL_QUEUE_BASE = "https://queue.fal.run"
FAL_STORAGE_BASE = "https://rest.alpha.fal.ai"

DEFAULT_API_URL = "http://localhost:8000"


class FalConfig(BaseModel):
    """Credentials and endpoints for the fal.ai REST API."""

    fal_key: Optional[str] = None
    queue_base: str = FAL_QUEUE_BASE
    storage_base: str = FAL_STORAGE_BASE
    poll_interval: float = Field(1.0, ge=0, description="Seconds between queue status polls")
    request_timeout: float = Field(60.0, gt=0, description="Timeout for each individual HTTP call")

    @property
    def has_key(self) -> bool:
        return bool(self.fal_key)

    @classmethod
    def from_env(cls) -> "FalConfig":
        """Build a config from FAL_KEY and the optional RESTOREFLOW_* overrides."""
        return cls(
            fal_key=os.getenv("FAL_KEY") or None,
            queue_base=os.getenv("RESTOREFLOW_FAL_QUEUE_URL", FAL_QUEUE_BASE),
            storage_base=os.getenv("RESTOREFLOW_FAL_STORAGE_URL", FAL_STORAGE_BASE),
            poll_interval=float(os.getenv("RESTOREFLOW_POLL_INTERVAL", "1.0")),
            request_timeout=float(os.getenv("RESTOREFLOW_REQUEST_TIMEOUT", "60")),
        )


def api_url_from_env() -> str:
    """Base URL of the RestoreFlow API used by the client workflow."""
    return os.getenv("RESTOREFLOW_API_URL", DEFAULT_API_URL).rstrip("/")
