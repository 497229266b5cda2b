import logging
import os
from typing import Callable, Dict, List, Optional

import cloudinary
import cloudinary.uploader

from .config import settings
from .models import ProcessComplete

logger = logging.getLogger(__name__)


def configure_cloudinary() -> bool:
    cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME") or settings.CLOUDINARY_CLOUD_NAME
    api_key = os.getenv("CLOUDINARY_API_KEY") or settings.CLOUDINARY_API_KEY
    api_secret = os.getenv("CLOUDINARY_API_SECRET") or settings.CLOUDINARY_API_SECRET
    if not (cloud_name and api_key and api_secret):
        return False
    cloudinary.config(
        cloud_name=cloud_name,
        api_key=api_key,
        api_secret=api_secret,
        secure=True,
    )
    return True


def mirror_output(url: str, folder: Optional[str] = None, public_id: Optional[str] = None) -> Dict:
    """Copy a remote output image into Cloudinary and return the upload response."""
    opts = {"resource_type": "image"}
    folder = folder or settings.DEFAULT_CLOUD_FOLDER
    if folder:
        opts["folder"] = folder
    if public_id:
        opts["public_id"] = public_id
    try:
        return cloudinary.uploader.upload(url, **opts)
    except Exception:
        logger.exception("Cloudinary upload failed for %s", url)
        raise


def mirror_listener(folder: Optional[str], results: List[str]) -> Callable[[ProcessComplete], None]:
    """Build a ``processComplete`` listener that mirrors each output.

    The hosted URL of every mirrored image is appended to ``results``.
    """

    def _on_complete(event: ProcessComplete) -> None:
        resp = mirror_output(event.output_url, folder=folder)
        hosted = resp.get("secure_url") or resp.get("url")
        logger.info("Mirrored %s to %s", event.output_url, hosted)
        results.append(hosted)

    return _on_complete
