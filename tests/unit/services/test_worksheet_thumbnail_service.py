"""
Unit tests for preview image rendering.
"""

from io import BytesIO

import pytest
from PIL import Image

from app.services.worksheet.worksheet_thumbnail_service import render_thumbnail

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def open_png(data: bytes) -> Image.Image:
    assert data.startswith(PNG_SIGNATURE)
    return Image.open(BytesIO(data))


class TestRenderThumbnail:
    """Tests for render_thumbnail."""

    @pytest.mark.unit
    def test_image_scaled_to_fit(self, sample_png_content):
        img = open_png(render_thumbnail(sample_png_content, "image/png", "a.png", size=160))

        assert max(img.size) == 160
        assert img.size == (160, 120)
        assert img.mode == "RGB"

    @pytest.mark.unit
    def test_small_image_not_enlarged(self):
        buffer = BytesIO()
        Image.new("RGB", (50, 40), (0, 128, 0)).save(buffer, format="JPEG")

        img = open_png(render_thumbnail(buffer.getvalue(), "image/jpeg", "a.jpg", size=320))

        assert img.size == (50, 40)

    @pytest.mark.unit
    def test_placeholder_for_documents(self, sample_pdf_content):
        img = open_png(
            render_thumbnail(sample_pdf_content, "application/pdf", "a.pdf", "Fractions", size=320)
        )

        assert max(img.size) == 320
        assert img.size[1] > img.size[0]

    @pytest.mark.unit
    def test_undecodable_image_gets_placeholder(self):
        data = render_thumbnail(b"not an image", "image/png", "broken.png", size=200)

        assert max(open_png(data).size) == 200

    @pytest.mark.unit
    def test_placeholder_without_title_or_extension(self):
        data = render_thumbnail(b"abc", None, "README", None, size=100)

        assert data.startswith(PNG_SIGNATURE)
