"""Article extraction from rendered page snapshots."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .errors import ImageArchiveError
from .images import IMAGES_DIRNAME, ImageArchiver, local_image_name
from .loader import ARTICLE_BODY_SELECTOR, PageLoader
from .models import Article

logger = logging.getLogger("edition_archiver")

HEADLINE_SELECTOR = ".article__headline"
SUBHEADLINE_SELECTOR = ".article__subheadline"
DESCRIPTION_SELECTOR = ".article__description"
LEAD_IMAGE_SELECTOR = ".article__lead-image img"
REMOVED_SELECTORS = (
    ".advert, .article__aside, .layout-article-links, .article__footnote, "
    "meta, iframe, .article-recirculation-aside"
)


def element_text(soup: BeautifulSoup, selector: str) -> str:
    """Return whitespace-normalized text of the first match, or ``""``."""
    tag = soup.select_one(selector)
    if tag is None:
        return ""
    return " ".join(tag.get_text().split())


def first_srcset_candidate(srcset: str) -> Optional[str]:
    """Return the URL of the first entry in a ``srcset`` value, if any."""
    first = srcset.split(",")[0].split()
    return first[0] if first else None


def sanitize_body(html: str, base_url: str) -> Tuple[str, List[str]]:
    """Strip clutter from the article body and point images at local files.

    Works on a parsed copy of the page, so the live document is untouched.
    Returns the serialized body element and the absolute URLs of its images
    in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    body = soup.select_one(ARTICLE_BODY_SELECTOR)
    if body is None:
        return "", []

    for tag in body.select(REMOVED_SELECTORS) + body.select("picture source"):
        # Matches can be nested inside an already removed subtree.
        if not tag.decomposed:
            tag.decompose()

    image_urls: List[str] = []
    for img in body.find_all("img"):
        src = img.get("src")
        srcset = img.get("srcset", "")
        for attr in ("srcset", "sizes"):
            if attr in img.attrs:
                del img[attr]
        if not src or src.startswith("data:"):
            # Lazy-loaded images carry a placeholder src and the real one in srcset.
            src = first_srcset_candidate(srcset)
            if src is None:
                continue
        absolute = urljoin(base_url, src)
        image_urls.append(absolute)
        img["src"] = f"{IMAGES_DIRNAME}/{local_image_name(absolute)}"
    return body.decode(), image_urls


def lead_image_url(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    img = soup.select_one(LEAD_IMAGE_SELECTOR)
    if img is None or not img.get("src"):
        return None
    return urljoin(base_url, img["src"])


class ContentExtractor:
    """Turn an article URL into an :class:`Article` with local images."""

    def __init__(self, loader: PageLoader, archiver: ImageArchiver) -> None:
        self.loader = loader
        self.archiver = archiver

    async def extract_article(self, url: str) -> Article:
        await self.loader.load_article(url)
        page = self.loader.page
        html = await page.content()
        base_url = page.url
        soup = BeautifulSoup(html, "html.parser")

        image = await self._lead_image(soup, base_url)
        content, image_urls = sanitize_body(html, base_url)
        if image_urls:
            assets = await self.archiver.archive_many(image_urls)
            logger.debug("Archived %d/%d inline images for %s", len(assets), len(image_urls), url)

        return Article(
            source_url=url,
            headline=element_text(soup, HEADLINE_SELECTOR),
            subheadline=element_text(soup, SUBHEADLINE_SELECTOR),
            description=element_text(soup, DESCRIPTION_SELECTOR),
            image=image,
            content=content,
            images=image_urls,
        )

    async def _lead_image(self, soup: BeautifulSoup, base_url: str) -> Optional[str]:
        src = lead_image_url(soup, base_url)
        if src is None:
            logger.debug("No lead image on %s", base_url)
            return None
        try:
            asset = await self.archiver.archive(src)
        except ImageArchiveError as exc:
            logger.warning("Lead image unavailable for %s: %s", base_url, exc)
            return None
        return asset.filename
