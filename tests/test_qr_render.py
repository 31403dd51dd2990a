"""
Tests for QR image rendering.
"""

import base64
from io import BytesIO

from PIL import Image

from modules.qr_render import render_qr_data_url, render_qr_png, save_qr_png


PAYLOAD = "(01)12345678901234(10)BATCH001(17)251231(21)SN001"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestRenderQR:

    def test_png_bytes(self):
        png = render_qr_png(PAYLOAD)
        assert png.startswith(PNG_SIGNATURE)

    def test_width_does_not_exceed_target(self):
        image = Image.open(BytesIO(render_qr_png(PAYLOAD, width=512)))
        assert image.size[0] == image.size[1]
        assert 256 < image.size[0] <= 512

    def test_data_url(self):
        url = render_qr_data_url(PAYLOAD, width=128)
        prefix = "data:image/png;base64,"
        assert url.startswith(prefix)
        assert base64.b64decode(url[len(prefix):]).startswith(PNG_SIGNATURE)

    def test_save(self, tmp_path):
        path = save_qr_png(PAYLOAD, tmp_path / "out" / "qr.png", width=128)
        assert path.read_bytes().startswith(PNG_SIGNATURE)
