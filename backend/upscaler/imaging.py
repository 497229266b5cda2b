from typing import Tuple

import cv2
import numpy as np


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) into an array."""
    if not data:
        raise ValueError("Empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError("Cannot decode image")
    return img


def image_size(data: bytes) -> Tuple[int, int]:
    img = decode_image(data)
    h, w = img.shape[:2]
    return w, h


def is_image(data: bytes) -> bool:
    try:
        decode_image(data)
    except ValueError:
        return False
    return True
