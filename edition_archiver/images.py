"""Image archiving through an in-page canvas re-encode."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import posixpath
import re
from typing import List, Optional
from urllib.parse import unquote, urlparse

from filetype import guess
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .config import ArchiveConfig
from .errors import ImageArchiveError
from .models import ImageAsset

logger = logging.getLogger("edition_archiver")

IMAGES_DIRNAME = "images"
DEFAULT_IMAGE_NAME = "image.png"
LEGACY_EXTENSION = re.compile(r"\.jpg$", re.IGNORECASE)
DATA_URL_PATTERN = re.compile(r"base64,(.*)$", re.DOTALL)

# Drawing into a canvas lets us read pixels of images served without CORS
# headers that a fetch from the controlling process would not be allowed to get.
CANVAS_SCRIPT = """
src => new Promise((resolve, reject) => {
    const img = new Image();
    img.crossOrigin = 'Anonymous';
    img.onload = function () {
        const canvas = document.createElement('canvas');
        canvas.height = this.naturalHeight;
        canvas.width = this.naturalWidth;
        canvas.getContext('2d').drawImage(this, 0, 0);
        resolve(canvas.toDataURL('image/png'));
    };
    img.onerror = () => reject(new Error('Could not load image ' + src));
    img.src = src;
    if (img.complete || img.complete === undefined) {
        img.src = 'data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///ywAAAAAAQABAAACAUwAOw==';
        img.src = src;
    }
})
"""


def local_image_name(url: str, target_name: Optional[str] = None) -> str:
    """Return the on-disk filename for an image URL.

    Pure function of its inputs: the same URL always maps to the same name.
    """
    name = target_name or posixpath.basename(unquote(urlparse(url).path))
    if not name:
        return DEFAULT_IMAGE_NAME
    return LEGACY_EXTENSION.sub(".png", name)


def decode_data_url(data_url: str) -> bytes:
    """Extract the binary payload from a ``data:...;base64,`` URL."""
    match = DATA_URL_PATTERN.search(data_url or "")
    if not match:
        raise ImageArchiveError("Canvas did not return a base64 data URL")
    try:
        return base64.b64decode(match.group(1), validate=True)
    except binascii.Error as exc:
        raise ImageArchiveError(f"Invalid base64 payload: {exc}") from exc


class ImageArchiver:
    """Persist images referenced by the currently loaded page.

    Every call re-encodes the image again; nothing is memoized between
    references, so repeated URLs are fetched each time they appear. Files are
    named after the URL basename and silently overwritten, which means two
    different URLs sharing a basename end up as one file (last write wins).
    """

    def __init__(self, page: Page, config: ArchiveConfig) -> None:
        self.page = page
        self.config = config

    async def archive(self, source_url: str, target_name: Optional[str] = None) -> ImageAsset:
        """Fetch ``source_url`` through the page and write it to disk."""
        filename = local_image_name(source_url, target_name)
        if target_name is None:
            directory = self.config.images_dir
            relative_path = f"{IMAGES_DIRNAME}/{filename}"
        else:
            directory = self.config.output_root
            relative_path = filename

        try:
            data_url = await self.page.evaluate(CANVAS_SCRIPT, source_url)
        except PlaywrightError as exc:
            raise ImageArchiveError(f"Failed to re-encode {source_url}: {exc}") from exc
        data = decode_data_url(data_url)
        kind = guess(data)
        if kind is None or not kind.mime.startswith("image/"):
            raise ImageArchiveError(f"Payload for {source_url} is not an image")

        destination = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            raise ImageArchiveError(f"Failed to write image {destination}: {exc}") from exc

        logger.debug("Saved %s -> %s (%d bytes)", source_url, destination, len(data))
        return ImageAsset(
            source_url=source_url,
            filename=filename,
            relative_path=relative_path,
            size=len(data),
        )

    async def archive_many(self, urls: List[str]) -> List[ImageAsset]:
        """Fetch all ``urls`` concurrently and wait for every one to settle.

        Failures are logged and skipped; successful assets keep input order.
        """
        results = await asyncio.gather(
            *(self.archive(url) for url in urls), return_exceptions=True
        )
        assets: List[ImageAsset] = []
        for url, result in zip(urls, results):
            if isinstance(result, ImageArchiveError):
                logger.warning("Skipping image %s: %s", url, result)
                continue
            if isinstance(result, BaseException):
                raise result
            assets.append(result)
        return assets
