"""Image utilities for Apple Wallet archives.

This module handles loading images referenced by a pass (raw bytes or
remote URLs), resizing them to the archive's image slots, and generating a
plain icon when no image is available, since an archive without an icon
cannot be installed.
"""

import io

import httpx
import structlog
from PIL import Image, UnidentifiedImageError

from pass_converter.protocols import ImageSource

logger = structlog.get_logger(__name__)


# Image size definitions (Apple requirements)
ICON_SIZES: dict[str, tuple[int, int]] = {
    "icon.png": (29, 29),
    "icon@2x.png": (58, 58),
}

FETCH_TIMEOUT = 10.0


def generate_colored_icon(size: tuple[int, int], color: tuple[int, int, int]) -> bytes:
    """Generate a simple colored square icon.

    Args:
        size: (width, height) tuple.
        color: (r, g, b) tuple.

    Returns:
        PNG image as bytes.
    """
    img = Image.new("RGB", size, color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def resize_image(image_data: bytes, size: tuple[int, int]) -> bytes:
    """Resize an image to the specified size.

    Args:
        image_data: Original image as bytes.
        size: Target (width, height).

    Returns:
        Resized PNG image as bytes, or a grey placeholder if the image cannot be read.
    """
    try:
        img: Image.Image = Image.open(io.BytesIO(image_data))
        img = img.resize(size, Image.Resampling.LANCZOS)

        # Keep RGBA/P modes for transparency, convert others to RGB
        if img.mode not in ("RGBA", "P", "RGB"):
            img = img.convert("RGB")

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("image_resize_failed", error=str(e))
        return generate_colored_icon(size, (100, 100, 100))


def to_png(image_data: bytes) -> bytes:
    """Re-encode an image as PNG, leaving PNG input untouched."""
    if image_data.startswith(b"\x89PNG"):
        return image_data
    try:
        img = Image.open(io.BytesIO(image_data))
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("image_conversion_failed", error=str(e))
        return image_data


async def fetch_image(url: str, client: httpx.AsyncClient | None = None) -> bytes | None:
    """Download an image.

    Args:
        url: HTTP(S) URL of the image.
        client: Client to reuse. A short-lived client is created if not provided.

    Returns:
        The image bytes, or None if the download failed.
    """
    try:
        if client is not None:
            response = await client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=FETCH_TIMEOUT) as owned_client:
                response = await owned_client.get(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("image_fetch_failed", url=url, error=str(e))
        return None

    logger.debug("image_fetched", url=url, size=len(response.content))
    return response.content


async def load_image(source: ImageSource | None, client: httpx.AsyncClient | None = None) -> bytes | None:
    """Turn an image reference into image bytes.

    Args:
        source: Raw bytes, or an HTTP(S) URL.
        client: HTTP client used for remote images.

    Returns:
        The image bytes, or None if the reference cannot be loaded.
    """
    if source is None:
        return None
    if isinstance(source, bytes):
        return source
    if source.startswith(("http://", "https://")):
        return await fetch_image(source, client)
    logger.warning("image_source_unsupported", source=source[:100])
    return None
