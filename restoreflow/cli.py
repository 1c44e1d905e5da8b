#!/usr/bin/env python3
"""
RestoreFlow command line.

Usage:
    restoreflow serve --port 8000
    restoreflow run old-photo.jpg --prompt "Warm, natural colors" --animate

`run` talks to a running API (RESTOREFLOW_API_URL or --api) exactly like the
browser would: upload, restore, optionally animate, then downloads the results.
"""

import sys
import asyncio
import argparse
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import httpx
import requests

from .config import api_url_from_env
from .presets import RESTORE, ANIMATE, get_preset, is_provider_media_url
from .pipeline.client import RestoreFlowClient
from .pipeline.models import SourceImage, WorkflowState
from .pipeline.orchestrator import RestorationWorkflow

logger = logging.getLogger(__name__)

PHOTO_FILENAME = "restored-photo.jpg"
VIDEO_FILENAME = "restored-video.mp4"


def load_source_image(path: Path) -> SourceImage:
    content_type, _ = mimetypes.guess_type(path.name)
    return SourceImage(
        content=path.read_bytes(),
        content_type=content_type or "application/octet-stream",
        file_name=path.name,
    )


def download(url: str, dest: Path) -> Optional[Path]:
    """Stream a provider-hosted result to disk. Other hosts are refused."""
    if not is_provider_media_url(url):
        logger.warning(f"Not downloading {url}: not a provider media host")
        return None

    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        with requests.get(url, stream=True, timeout=60) as resp:
            resp.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in resp.iter_content(chunk_size=64 * 1024):
                    f.write(chunk)
    except requests.RequestException as e:
        logger.error(f"Download of {url} failed: {e}")
        dest.unlink(missing_ok=True)
        return None
    logger.info(f"Saved {dest}")
    return dest


def _print_state(state: WorkflowState):
    line = f"[{state.stage.value}]"
    if state.error:
        line += f" error: {state.error}"
    print(line, flush=True)


async def run_workflow(
    photo: Path,
    api_url: str,
    prompt: str = "",
    video_prompt: str = "",
    animate: bool = False,
) -> WorkflowState:
    # No client-side timeout: generation can take minutes and is never cut short.
    async with httpx.AsyncClient(base_url=api_url, timeout=None) as http:
        workflow = RestorationWorkflow(RestoreFlowClient(http), on_change=_print_state)
        workflow.set_restore_prompt(prompt)
        workflow.set_animate_prompt(video_prompt)

        state = await workflow.select_file(load_source_image(photo))
        if state.error:
            return state

        state = await workflow.restore()
        if state.error or not animate:
            return state

        return await workflow.animate()


def cmd_run(args) -> int:
    photo = Path(args.photo)
    if not photo.is_file():
        print(f"No such file: {photo}", file=sys.stderr)
        return 1

    state = asyncio.run(run_workflow(
        photo, args.api, prompt=args.prompt, video_prompt=args.video_prompt, animate=args.animate,
    ))

    output_dir = Path(args.output_dir)
    failed = bool(state.error)
    if state.restored_image_url:
        print(f"Restored photo: {state.restored_image_url}")
        if download(state.restored_image_url, output_dir / PHOTO_FILENAME) is None:
            failed = True
    if state.video_url:
        print(f"Video: {state.video_url}")
        if download(state.video_url, output_dir / VIDEO_FILENAME) is None:
            failed = True

    return 1 if failed else 0


def cmd_serve(args) -> int:
    from .main import run
    run(host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="restoreflow", description="Restore → Enhance → Animate old photos")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    run = sub.add_parser("run", help="Restore (and optionally animate) a photo")
    run.add_argument("photo", help="Path to a JPG, PNG or other image")
    run.add_argument(
        "--prompt", default="",
        help=f"Custom restoration prompt, e.g. '{get_preset(RESTORE)['example']}'",
    )
    run.add_argument(
        "--video-prompt", default="",
        help=f"Video animation prompt, e.g. '{get_preset(ANIMATE)['example']}'",
    )
    run.add_argument("--animate", action="store_true", help="Also generate a video")
    run.add_argument("--api", default=api_url_from_env(), help="RestoreFlow API base URL")
    run.add_argument("--output-dir", default=".", help="Where to save the results")
    run.set_defaults(func=cmd_run)

    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
