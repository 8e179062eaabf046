# -*- coding: utf-8 -*-
# lanprint/core/encoder.py
"""
ESC/POS byte builders. Pure functions, no I/O.

Text is passed through as UTF-8 without codepage transcoding; printers
without UTF-8 support need pre-encoded content from the caller.

initialize, select_print_mode and cut are receipt-building helpers for
callers that assemble their own ``data`` payloads.
"""
from __future__ import annotations

from typing import Union

from escpos.constants import CTL_LF, ESC, GS, NUL

from lanprint.core.models import RasterImage

ALIGN_LEFT = 0
ALIGN_CENTER = 1
ALIGN_RIGHT = 2

_ALIGN_NAMES = {"left": ALIGN_LEFT, "center": ALIGN_CENTER, "right": ALIGN_RIGHT}

# ESC p m t1 t2: drawer #1, 25*2ms on, 250*2ms off
DRAWER_KICK = ESC + b"p" + NUL + bytes((25, 250))

RASTER_MAX = 0xFFFF


def initialize() -> bytes:
    return ESC + b"@"


def alignment(mode: Union[int, str]) -> bytes:
    if isinstance(mode, str):
        if mode.lower() not in _ALIGN_NAMES:
            raise ValueError(f"Unknown alignment: {mode!r}")
        mode = _ALIGN_NAMES[mode.lower()]
    if mode not in (ALIGN_LEFT, ALIGN_CENTER, ALIGN_RIGHT):
        raise ValueError(f"Unknown alignment: {mode!r}")
    return ESC + b"a" + bytes((mode,))


def line_feed(lines: int = 1) -> bytes:
    return CTL_LF * lines


def text(content: Union[str, bytes]) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def select_print_mode(bold: bool = False, double_height: bool = False, double_width: bool = False) -> bytes:
    n = 0
    if bold:
        n |= 0x08
    if double_height:
        n |= 0x10
    if double_width:
        n |= 0x20
    return ESC + b"!" + bytes((n,))


def cut(feed: int = 3) -> bytes:
    """GS V 65 n: feed ``n`` dots then partial cut."""
    if not 0 <= feed <= 255:
        raise ValueError(f"Feed must be 0..255, got {feed}")
    return GS + b"V" + bytes((65, feed))


def drawer_kick() -> bytes:
    return DRAWER_KICK


def raster_image(image: RasterImage) -> bytes:
    """GS v 0 block in normal mode for a packed bitmap."""
    xb = image.width_bytes
    if xb > RASTER_MAX or image.height > RASTER_MAX:
        raise ValueError(f"Raster too large: {xb} bytes x {image.height} rows")
    header = GS + b"v0" + NUL + xb.to_bytes(2, "little") + image.height.to_bytes(2, "little")
    return header + image.data


def print_with_image(image: RasterImage, payload: Union[str, bytes]) -> bytes:
    # alignment persists on the device, so the logo block must restore left
    return b"".join((
        alignment(ALIGN_CENTER),
        raster_image(image),
        alignment(ALIGN_LEFT),
        line_feed(),
        text(payload),
    ))
