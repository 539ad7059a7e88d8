"""Navigation helpers that wait until a page is really usable."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import AUTH_DOMAIN, ArchiveConfig
from .errors import ArticleLoadError, AuthenticationError

logger = logging.getLogger("edition_archiver")

ARTICLE_BODY_SELECTOR = ".layout-article-body"
READY_STATE_SCRIPT = "() => document.readyState === 'complete'"
LOGGED_IN_SCRIPT = (
    "domain => document.readyState === 'complete'"
    " && !window.location.href.includes(domain)"
)


class PageLoader:
    """Drive a single browser page through navigations.

    The page is handed in by the owner of the browser session; the loader
    never opens or closes pages itself.
    """

    def __init__(self, page: Page, config: ArchiveConfig) -> None:
        self.page = page
        self.config = config

    async def load(self, url: str) -> None:
        """Navigate to ``url`` and block until the document is complete."""
        logger.debug("Loading %s", url)
        await self.page.goto(url, wait_until="load")
        await self.page.wait_for_function(READY_STATE_SCRIPT, timeout=0)

    async def load_authenticated_landing(self, url: Optional[str] = None) -> None:
        """Wait until the login redirect has brought us back from the auth domain."""
        if url is not None:
            await self.page.goto(url, wait_until="load")
        try:
            await self.page.wait_for_function(
                LOGGED_IN_SCRIPT,
                arg=AUTH_DOMAIN,
                timeout=self.config.login_timeout * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise AuthenticationError(
                f"Still on {AUTH_DOMAIN} after {self.config.login_timeout:.0f}s"
            ) from exc
        logger.info("Logged in, landed on %s", self.page.url)

    async def load_article(self, url: str) -> int:
        """Load an article, reloading while the delayed error page replaces it.

        The site sometimes renders the article and then swaps in an error page
        shortly afterwards, so the body marker is only checked after the settle
        interval. Returns the number of attempts used.
        """
        limit = self.config.max_load_attempts
        attempt = 0
        while limit is None or attempt < limit:
            attempt += 1
            if attempt > 1:
                delay = self.config.retry_backoff * 2 ** (attempt - 2)
                logger.warning(
                    "Article body missing for %s, retrying in %.1fs (attempt %d)",
                    url,
                    delay,
                    attempt,
                )
                if delay:
                    await self.page.wait_for_timeout(delay * 1000)
            try:
                await self.load(url)
            except PlaywrightTimeoutError as exc:
                logger.warning("Timeout while loading %s: %s", url, exc)
                continue
            await self.page.wait_for_timeout(self.config.settle_seconds * 1000)
            if await self._has_article_body():
                return attempt
        raise ArticleLoadError(url, attempt)

    async def _has_article_body(self) -> bool:
        try:
            return await self.page.query_selector(ARTICLE_BODY_SELECTOR) is not None
        except PlaywrightError as exc:
            # The error page swap can tear down the execution context mid-query.
            logger.debug("Body check failed: %s", exc)
            return False
