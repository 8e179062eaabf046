# -*- coding: utf-8 -*-
# lanprint/utils/image_tools.py
from __future__ import annotations

import base64
import binascii
import io
from typing import Iterable, Union

from PIL import Image, UnidentifiedImageError

from lanprint.core.exceptions import ImageDecodeError
from lanprint.core.models import RasterImage

# 80 mm heads with a 72 mm printable area at 203 dpi
MAX_PRINT_WIDTH = 384
BLACK_THRESHOLD = 128


def decode_base64_image(data: Union[str, bytes]) -> Image.Image:
    """
    Base64 (PNG/JPEG) -> PIL image. A ``data:image/...;base64,`` prefix is
    accepted and stripped.
    """
    if isinstance(data, bytes):
        data = data.decode("ascii", errors="replace")
    data = data.strip()
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    data = "".join(data.split())
    if not data:
        raise ImageDecodeError("Empty image data")
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 image: {e}") from e
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Image too large: {e}") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e
    return img


def _flatten(img: Image.Image) -> Image.Image:
    # transparent logo backgrounds must print white
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA", "PA"):
        img = img.convert("RGBA")
        bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
        return Image.alpha_composite(bg, img).convert("RGB")
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def scale_to_width(img: Image.Image, max_width: int = MAX_PRINT_WIDTH) -> Image.Image:
    w, h = img.size
    if w <= max_width:
        return img
    new_h = max(1, round(h * max_width / w))
    return img.resize((max_width, new_h), Image.Resampling.BILINEAR)


def luminance(r: int, g: int, b: int) -> int:
    return (299 * r + 587 * g + 114 * b) // 1000


def pack_rows(width: int, height: int, black: Iterable[bool]) -> bytes:
    """Pack row-major pixels MSB-first; trailing bits of each row stay 0."""
    row_bytes = (width + 7) // 8
    out = bytearray(row_bytes * height)
    for i, is_black in enumerate(black):
        if not is_black:
            continue
        y, x = divmod(i, width)
        out[y * row_bytes + (x >> 3)] |= 0x80 >> (x & 7)
    return bytes(out)


def to_raster(img: Image.Image, max_width: int = MAX_PRINT_WIDTH) -> RasterImage:
    img = scale_to_width(_flatten(img), max_width)
    w, h = img.size
    rgb = img.tobytes()
    black = (luminance(rgb[i], rgb[i + 1], rgb[i + 2]) < BLACK_THRESHOLD for i in range(0, len(rgb), 3))
    return RasterImage(width=w, height=h, data=pack_rows(w, h, black))


def image_from_base64(data: Union[str, bytes], max_width: int = MAX_PRINT_WIDTH) -> RasterImage:
    try:
        img = decode_base64_image(data)
        return to_raster(img, max_width)
    except ImageDecodeError:
        raise
    except Exception as e:
        raise ImageDecodeError(f"Cannot rasterize image: {e}") from e
