"""
QR image rendering for GS1 payloads.
"""

from __future__ import annotations

import base64
from io import BytesIO
from pathlib import Path

import qrcode
from qrcode.constants import ERROR_CORRECT_M


DEFAULT_WIDTH = 512
DEFAULT_MARGIN = 2


def render_qr_png(data: str, width: int = DEFAULT_WIDTH, margin: int = DEFAULT_MARGIN) -> bytes:
    """
    Render `data` as a PNG QR code with error correction level M.

    The module size is chosen so the image is as close to `width` pixels as
    possible without exceeding it (never below 1 px per module).
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=margin)
    qr.add_data(data)
    qr.make(fit=True)
    qr.box_size = max(1, width // (qr.modules_count + 2 * margin))

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def render_qr_data_url(data: str, width: int = DEFAULT_WIDTH, margin: int = DEFAULT_MARGIN) -> str:
    """Render a QR code as a data:image/png;base64 URL for embedding in pages."""
    png = render_qr_png(data, width=width, margin=margin)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def save_qr_png(data: str, path: Path, width: int = DEFAULT_WIDTH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(render_qr_png(data, width=width))
    return path
