"""
Worksheet Thumbnail Service - preview images for uploaded files.

Image uploads are scaled down to fit the configured size. Every other file type
(PDF, Office documents...) gets a placeholder card showing the file extension
and the worksheet title; no document rendering is attempted.
"""

import textwrap
from io import BytesIO
from pathlib import PurePosixPath
from typing import Optional

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

# Placeholder cards use a portrait page ratio (A4-ish)
PAGE_RATIO = 1.294
BACKGROUND = (255, 255, 255)
BORDER = (200, 200, 200)
BADGE = (52, 101, 164)
TEXT = (40, 40, 40)


def render_thumbnail(
    content: bytes,
    content_type: Optional[str],
    filename: str,
    title: Optional[str] = None,
    size: int = 320,
) -> bytes:
    """
    Render a PNG preview for an uploaded file.

    Args:
        content: Uploaded file bytes
        content_type: Declared MIME type
        filename: Client filename, used for the placeholder badge
        title: Worksheet title shown on the placeholder
        size: Longest edge of the preview in pixels

    Returns:
        PNG-encoded image bytes
    """
    if content_type and content_type.startswith("image/"):
        try:
            return _scale_image(content, size)
        except (UnidentifiedImageError, OSError):
            # Declared as an image but not decodable
            pass
    return _placeholder(filename, title, size)


def _scale_image(content: bytes, size: int) -> bytes:
    with Image.open(BytesIO(content)) as img:
        img.thumbnail((size, size), Image.Resampling.LANCZOS)

        if img.mode in ("RGBA", "LA", "P"):
            if img.mode != "RGBA":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, BACKGROUND)
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        buffer = BytesIO()
        img.save(buffer, format="PNG", optimize=True)
        return buffer.getvalue()


def _placeholder(filename: str, title: Optional[str], size: int) -> bytes:
    height = size
    width = max(1, int(size / PAGE_RATIO))
    font = ImageFont.load_default()

    img = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, width - 1, height - 1), outline=BORDER, width=2)

    extension = PurePosixPath(filename).suffix.lstrip(".").upper() or "FILE"
    badge_height = max(24, height // 8)
    draw.rectangle((0, 0, width - 1, badge_height), fill=BADGE)
    draw.text((10, max(2, badge_height // 2 - 6)), extension, fill=BACKGROUND, font=font)

    if title:
        y = badge_height + 12
        for line in textwrap.wrap(title, width=max(8, width // 8))[:6]:
            draw.text((10, y), line, fill=TEXT, font=font)
            y += 14

    buffer = BytesIO()
    img.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()
