import base64
import binascii
import mimetypes
import os
import re
from typing import Tuple
from urllib.parse import unquote_to_bytes

from .config import settings

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


def safe_filename(filename: str) -> str:
    name = os.path.basename(filename)
    name = re.sub(r'[^A-Za-z0-9._-]', '_', name)
    return name


def allowed_file(filename: str) -> bool:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return ext in settings.ALLOWED_EXT


def guess_content_type(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"


def to_data_url(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """Split a data URL into its MIME type and decoded payload."""
    m = DATA_URL_RE.match(url)
    if not m:
        raise ValueError("Not a data URL")
    mime = m.group("mime") or "text/plain"
    if m.group("b64"):
        try:
            payload = base64.b64decode(m.group("data"), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    else:
        payload = unquote_to_bytes(m.group("data"))
    return mime, payload


def is_remote_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")
