"""
Preset Library: model endpoints, default prompts and the fixed parameters
forwarded with every provider call.

Callers may only override the prompt (and, for video, the duration); the
remaining parameters are policy and never come from the request.
"""

import fnmatch
from typing import Optional
from urllib.parse import urlparse

RESTORE = "restore"
ANIMATE = "animate"

PRESETS = {
    RESTORE: {
        "id": RESTORE,
        "name": "Photo Restoration",
        "endpoint": "fal-ai/flux-pro/kontext",
        "prompt": (
            "Restore this old black and white photo to a modern, high-quality, "
            "colorized version with vibrant colors and sharp details"
        ),
        "example": (
            "Restore this vintage family photo with warm, natural colors "
            "and enhance the clothing details"
        ),
        "params": {
            "guidance_scale": 3.5,
            "num_images": 1,
            "output_format": "jpeg",
            "safety_tolerance": "2",
        },
    },
    ANIMATE: {
        "id": ANIMATE,
        "name": "Photo Animation",
        "endpoint": "fal-ai/kling-video/v1.6/pro/image-to-video",
        "prompt": (
            "The person in the photo comes to life with gentle, natural movements "
            "and a warm smile"
        ),
        "example": "The person smiles gently and looks around with natural eye movements",
        "duration": "5",
        "params": {
            "aspect_ratio": "16:9",
            "negative_prompt": "blur, distort, and low quality",
            "cfg_scale": 0.5,
        },
    },
}

# Hosts the provider serves generated media from.
MEDIA_HOST_PATTERNS = ("v3.fal.media", "v3b.fal.media", "fal.media", "*.fal.media")


def get_preset(preset_id: str) -> dict:
    """Get the full preset config. Raises if preset not found."""
    preset = PRESETS.get(preset_id)
    if not preset:
        raise ValueError(f"Unknown preset: {preset_id}. Available: {list(PRESETS.keys())}")
    return preset


def get_prompt(preset_id: str, custom_prompt: Optional[str] = None) -> str:
    """Return the caller's prompt, or the preset default when it is empty."""
    return custom_prompt or get_preset(preset_id)["prompt"]


def is_provider_media_url(url: str) -> bool:
    """True for https URLs on one of the provider's media hosts."""
    parsed = urlparse(url or "")
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    return any(fnmatch.fnmatch(parsed.hostname, pattern) for pattern in MEDIA_HOST_PATTERNS)
