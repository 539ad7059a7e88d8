"""Table of contents parsing for the weekly edition page."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from .content import element_text
from .errors import ImageArchiveError, TableOfContentsError
from .images import ImageArchiver
from .loader import PageLoader
from .models import Edition, Section

logger = logging.getLogger("edition_archiver")

EDITION_TITLE_SELECTOR = ".weekly-edition-header__headline"
COVER_SELECTOR = ".weekly-edition-header__image img"
SECTION_SELECTOR = "main section"
SECTION_TITLE_SELECTOR = "h2.ds-section-headline"
ARTICLE_LINK_SELECTOR = "a.headline-link, a.weekly-edition-wtw__link"
COVER_FILENAME = "cover.png"


def parse_sections(html: str, base_url: str) -> List[Section]:
    """Collect sections and their article links in document order.

    Sections without any matching link are kept with an empty list.
    """
    soup = BeautifulSoup(html, "html.parser")
    sections: List[Section] = []
    for node in soup.select(SECTION_SELECTOR):
        links = [
            urljoin(base_url, anchor["href"])
            for anchor in node.select(ARTICLE_LINK_SELECTOR)
            if anchor.has_attr("href")
        ]
        sections.append(Section(title=element_text(node, SECTION_TITLE_SELECTOR), articles=links))
    return sections


class TableOfContentsReader:
    """Read the edition landing page into an :class:`Edition`."""

    def __init__(self, loader: PageLoader, archiver: ImageArchiver) -> None:
        self.loader = loader
        self.archiver = archiver

    async def read_edition(self, edition_url: str) -> Edition:
        try:
            await self.loader.load(edition_url)
            html = await self.loader.page.content()
        except PlaywrightError as exc:
            raise TableOfContentsError(f"Could not load edition {edition_url}: {exc}") from exc

        base_url = self.loader.page.url
        soup = BeautifulSoup(html, "html.parser")
        title = element_text(soup, EDITION_TITLE_SELECTOR)
        if not title:
            raise TableOfContentsError(f"No edition headline found on {base_url}")

        cover = await self._cover(soup, base_url)
        sections = parse_sections(html, base_url)
        logger.info(
            "Edition %r: %d sections, %d articles",
            title,
            len(sections),
            sum(len(section.articles) for section in sections),
        )
        return Edition(title=title, cover=cover, sections=sections)

    async def _cover(self, soup: BeautifulSoup, base_url: str) -> Optional[str]:
        img = soup.select_one(COVER_SELECTOR)
        if img is None or not img.get("src"):
            logger.warning("No cover image found on %s", base_url)
            return None
        try:
            asset = await self.archiver.archive(urljoin(base_url, img["src"]), COVER_FILENAME)
        except ImageArchiveError as exc:
            logger.warning("Cover image unavailable: %s", exc)
            return None
        return asset.filename
