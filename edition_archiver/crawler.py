"""High-level orchestration of one edition archiving run."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from playwright.async_api import Page, async_playwright

from .assembler import DocumentAssembler
from .auth import log_in
from .config import ArchiveConfig, Credentials
from .content import ContentExtractor
from .converter import convert_to_epub
from .images import ImageArchiver
from .loader import PageLoader
from .models import Edition
from .toc import TableOfContentsReader

logger = logging.getLogger("edition_archiver")


class RunState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    TRAVERSING_SECTIONS = "traversing_sections"
    TRAVERSING_ARTICLES = "traversing_articles"
    FINALIZING = "finalizing"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = {RunState.DONE, RunState.FAILED}


@dataclass
class ArchiveResult:
    """Summary of a completed run."""

    edition: Edition
    html_path: Path
    epub_path: Optional[Path]
    article_count: int
    total_seconds: float


class EditionArchiver:
    """Drive login, table of contents, articles and conversion in order.

    Owns the browser session for the whole run and hands the single page to
    each component, which only ever uses it one navigation at a time.
    """

    def __init__(self, config: ArchiveConfig, credentials: Credentials) -> None:
        self.config = config
        self.credentials = credentials
        self.state = RunState.UNAUTHENTICATED
        self.current_section: Optional[str] = None

    def _transition(self, state: RunState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Run already ended in state {self.state.value}")
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    async def archive(self, page: Page) -> DocumentAssembler:
        """Log in and write every section of the edition to ``index.html``."""
        loader = PageLoader(page, self.config)
        archiver = ImageArchiver(page, self.config)
        extractor = ContentExtractor(loader, archiver)
        reader = TableOfContentsReader(loader, archiver)
        assembler: Optional[DocumentAssembler] = None

        try:
            await log_in(loader, self.credentials)
            self._transition(RunState.AUTHENTICATED)

            self._transition(RunState.TRAVERSING_SECTIONS)
            edition = await reader.read_edition(self.config.edition_url)
            assembler = DocumentAssembler(edition)
            assembler.open(self.config.index_path)
            assembler.write_header()

            for section in edition.sections:
                self.current_section = section.title
                self._transition(RunState.TRAVERSING_ARTICLES)
                logger.info("Section %r (%d articles)", section.title, len(section.articles))
                assembler.write_section_marker(section.title)
                for url in section.articles:
                    article = await extractor.extract_article(url)
                    assembler.write_article(article)
                    logger.info("Saved %s", article.headline or url)
                self._transition(RunState.TRAVERSING_SECTIONS)
            self.current_section = None

            self._transition(RunState.FINALIZING)
            assembler.close()
        except BaseException:
            logger.error("Run failed in state %s", self.state.value)
            self.state = RunState.FAILED
            if assembler is not None:
                assembler.abort()
            raise
        return assembler

    async def run(self) -> ArchiveResult:
        overall_start = time.perf_counter()
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.config.headless)
            try:
                page = await browser.new_page()
                page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
                assembler = await self.archive(page)
            finally:
                await browser.close()

        edition = assembler.edition
        self._transition(RunState.CONVERTING)
        cover_path = self.config.cover_path if edition.cover else None
        epub_path = convert_to_epub(
            self.config.index_path,
            self.config.epub_dir,
            edition.title,
            cover_path,
        )
        self._transition(RunState.DONE)
        return ArchiveResult(
            edition=edition,
            html_path=self.config.index_path,
            epub_path=epub_path,
            article_count=assembler.articles_written,
            total_seconds=time.perf_counter() - overall_start,
        )


async def run_archiver(config: ArchiveConfig, credentials: Credentials) -> ArchiveResult:
    """Archive the configured edition with a fresh browser session."""
    return await EditionArchiver(config, credentials).run()
