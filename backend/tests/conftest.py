import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

# Ensure the project root (backend/) is on sys.path so tests can import the `upscaler` package.
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def make_png(w: int = 32, h: int = 24, value: int = 128) -> bytes:
    img = (np.zeros((h, w, 3), dtype="uint8") + value).astype("uint8")
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_file(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes)
    return str(path)
