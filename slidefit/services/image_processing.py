from io import BytesIO
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

from slidefit.core.logger import get_logger

logger = get_logger("image_processing")


def decode_image(data: bytes) -> Optional[Image.Image]:
    """
    Decode raw bytes into a Pillow image.

    If the default plugins cannot identify the data, every installed plugin is
    registered and decoding is tried once more. Returns None for empty or
    undecodable input so the caller can skip the image.
    """
    if not data:
        return None

    img = _open(data)
    if img is None:
        Image.init()
        img = _open(data)
    if img is None:
        logger.warning(f"Could not decode {len(data)} bytes as an image")
    return img


def _open(data: bytes) -> Optional[Image.Image]:
    try:
        img = Image.open(BytesIO(data))
        img.load()
        return img
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return None


def crop_to_aspect(img: Image.Image, aspect: float, size: Optional[Tuple[int, int]] = None) -> Image.Image:
    """Center-crop img to the width/height ratio aspect, optionally resampling to size"""
    if aspect <= 0:
        raise ValueError(f"aspect must be positive, got {aspect}")

    w, h = img.size
    current = w / h
    x, y, cw, ch = 0, 0, w, h
    if current > aspect:
        cw = round(h * aspect)
        x = (w - cw) // 2
    elif current < aspect:
        ch = round(w / aspect)
        y = (h - ch) // 2
    cw, ch = max(1, cw), max(1, ch)

    out = img.crop((x, y, x + cw, y + ch))
    if out.mode != "RGBA":
        out = out.convert("RGBA")
    if size is not None:
        out = out.resize(size, Image.Resampling.BICUBIC)
    return out


def to_png_bytes(img: Image.Image) -> bytes:
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
