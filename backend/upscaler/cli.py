"""Command-line front end for the upscaler."""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .client import PredictionClient
from .cloud import configure_cloudinary, mirror_listener
from .config import settings
from .events import PROCESS_COMPLETE, EventBus
from .models import UIStatus, User
from .processor import ImageProcessor
from .utils import safe_filename

logger = logging.getLogger(__name__)


def build_client(base_url: Optional[str]) -> PredictionClient:
    return PredictionClient(base_url=base_url)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="upscale", description="Upscale an image with a remote model")
    parser.add_argument("image", help="Path to the input image")
    parser.add_argument("--scale", type=int, default=settings.DEFAULT_SCALE, help="Upscale factor")
    parser.add_argument("--face-enhance", action="store_true", help="Run face enhancement")
    parser.add_argument("--output", help="Where to save the result (default: upscaled_<name>.png)")
    parser.add_argument("--no-download", action="store_true", help="Only print the result URL")
    parser.add_argument("--mirror-folder", help="Also copy the result to this Cloudinary folder")
    parser.add_argument("--user", default=settings.UPSCALER_USER, help="Logged-in user email")
    parser.add_argument("--base-url", default=settings.API_BASE_URL, help="Prediction API base URL")
    parser.add_argument("--poll-interval", type=float, default=settings.POLL_INTERVAL)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def default_output_path(image: str) -> str:
    base, _ = os.path.splitext(safe_filename(image))
    return os.path.join(os.path.dirname(image), f"upscaled_{base}.png")


def build_processor(args: argparse.Namespace, events: EventBus) -> ImageProcessor:
    """Set up the processor from the command line; raises ValueError/OSError on bad input."""

    def report(status: UIStatus, message: str) -> None:
        print(f"[{status.value}] {message}", file=sys.stderr)

    def notify(message: str) -> None:
        print(message, file=sys.stderr)

    user = User(id=args.user, email=args.user) if args.user else None

    processor = ImageProcessor(
        build_client(args.base_url),
        user=user,
        poll_interval=args.poll_interval,
        events=events,
        notify=notify,
        on_status_change=report,
    )
    processor.select_file(args.image)
    if processor.controls_visible:
        processor.set_scale(args.scale)
        processor.set_enhance_face(args.face_enhance)
    return processor


async def run(args: argparse.Namespace, processor: ImageProcessor) -> int:
    processed: List[str] = []
    processor.events.subscribe(PROCESS_COMPLETE, lambda event: processed.append(event.output_url))

    mirrored: List[str] = []
    if args.mirror_folder:
        if configure_cloudinary():
            processor.events.subscribe(PROCESS_COMPLETE, mirror_listener(args.mirror_folder, mirrored))
        else:
            logger.warning("Cloudinary credentials not configured; skipping mirror")

    async with processor.client as client:
        await processor.process()
        if processor.status != UIStatus.complete or not processed:
            return 1

        processed_image_url = processed[-1]
        print(processed_image_url)
        for hosted in mirrored:
            print(hosted)

        if not args.no_download:
            dest = args.output or default_output_path(args.image)
            await client.download(processed_image_url, dest)
            print(dest)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        processor = build_processor(args, EventBus())
    except (ValueError, OSError) as e:
        parser.error(str(e))

    try:
        return asyncio.run(run(args, processor))
    except Exception as e:
        logger.exception("Upscale failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
