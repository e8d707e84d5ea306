from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from PIL import Image, UnidentifiedImageError

from socials.errors import AttachmentError, BlueskyBlobTooLarge

if TYPE_CHECKING:
    from socials.bluesky_client import BlueskyClient

logger = logging.getLogger(__name__)

# Hard server-side limit for a single blob.
MAX_BLOB_BYTES: int = 1_000_000

EMBED_IMAGES_TYPE = "app.bsky.embed.images"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}


def guess_content_type(path: str | Path) -> str:
    """Content type from the file suffix only (case-insensitive); no sniffing."""
    suffix = Path(path).suffix.lower().lstrip(".")
    return CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)


def _aspect_ratio(data: bytes) -> dict[str, int] | None:
    # Dimensions are a nicety for clients; skip them if Pillow can't read the file.
    try:
        with Image.open(io.BytesIO(data)) as im:
            width, height = im.size
    except (UnidentifiedImageError, OSError):
        return None
    if not width or not height:
        return None
    return {"width": width, "height": height}


def read_attachment(path: str | Path) -> bytes:
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise AttachmentError(f"Failed to read file {p}: {e}") from e

    if len(data) > MAX_BLOB_BYTES:
        logger.warning(
            "Image %s is %d bytes (> %d byte limit); refusing to upload.",
            p,
            len(data),
            MAX_BLOB_BYTES,
        )
        raise BlueskyBlobTooLarge(
            f"Image file size too large. {MAX_BLOB_BYTES} bytes maximum, got: {len(data)}"
        )
    return data


def upload_images(
    client: BlueskyClient,
    access_token: str,
    image_paths: Iterable[str | Path],
    alt_text: str = "",
) -> dict:
    """
    Upload each image and return an app.bsky.embed.images embed.

    Images keep their input order and all share `alt_text`. The first file that
    can't be read, is too large, or fails to upload aborts the whole embed.
    """
    images = []
    for path in image_paths:
        data = read_attachment(path)
        blob = client.upload_blob(data, guess_content_type(path), access_token)

        image = {"image": blob, "alt": alt_text}
        aspect = _aspect_ratio(data)
        if aspect:
            image["aspectRatio"] = aspect
        images.append(image)

    return {"$type": EMBED_IMAGES_TYPE, "images": images}
