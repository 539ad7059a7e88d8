from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from edition_archiver.config import ArchiveConfig

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def png_bytes(tag: str = "") -> bytes:
    """A valid PNG header followed by a marker so files can be told apart."""
    return PNG_1X1 + tag.encode()


class FakePage:
    """In-memory stand-in for a Playwright page.

    ``documents`` maps a URL to the HTML served on each successive visit; the
    last entry keeps being served once the list is exhausted. ``images`` maps
    image URLs to PNG bytes or to an exception raised by the canvas script.
    """

    def __init__(
        self,
        documents: Optional[Dict[str, Union[str, Sequence[str]]]] = None,
        images: Optional[Dict[str, Union[bytes, Exception]]] = None,
        image_delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.documents = {
            url: [html] if isinstance(html, str) else list(html)
            for url, html in (documents or {}).items()
        }
        self.images = images or {}
        self.image_delays = image_delays or {}
        self.url = "about:blank"
        self.html = ""
        self.visits: List[str] = []
        self.evaluated: List[str] = []
        self.waits: List[float] = []
        self.goto_errors: Dict[str, List[Exception]] = {}

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.navigation_timeout = timeout

    async def goto(self, url: str, wait_until: str = "load") -> None:
        self.visits.append(url)
        errors = self.goto_errors.get(url)
        if errors:
            raise errors.pop(0)
        if url not in self.documents:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        served = self.documents[url]
        self.html = served.pop(0) if len(served) > 1 else served[0]
        self.url = url

    async def wait_for_function(self, expression, arg=None, timeout=None) -> None:
        return None

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waits.append(timeout)

    async def query_selector(self, selector: str):
        return BeautifulSoup(self.html, "html.parser").select_one(selector)

    async def content(self) -> str:
        return self.html

    async def evaluate(self, script: str, arg=None) -> str:
        self.evaluated.append(arg)
        await asyncio.sleep(self.image_delays.get(arg, 0))
        payload = self.images.get(arg)
        if payload is None:
            raise PlaywrightError(f"Could not load image {arg}")
        if isinstance(payload, Exception):
            raise payload
        return "data:image/png;base64," + base64.b64encode(payload).decode()


@pytest.fixture
def config(tmp_path: Path) -> ArchiveConfig:
    return ArchiveConfig(
        output_root=tmp_path / "output",
        settle_seconds=1.0,
        max_load_attempts=3,
        retry_backoff=0.5,
        epub_dir=tmp_path,
    )


def article_html(
    headline: str = "Headline",
    subheadline: str = "Sub",
    description: str = "Description",
    lead_image: Optional[str] = "https://cdn.example.com/lead.jpg",
    body: str = "<p>Body text</p>",
) -> str:
    parts = ["<html><body><main>"]
    if subheadline is not None:
        parts.append(f'<span class="article__subheadline">{subheadline}</span>')
    if headline is not None:
        parts.append(f'<h1 class="article__headline">{headline}</h1>')
    if description is not None:
        parts.append(f'<p class="article__description">{description}</p>')
    if lead_image is not None:
        parts.append(f'<figure class="article__lead-image"><img src="{lead_image}"/></figure>')
    parts.append(f'<section class="layout-article-body">{body}</section>')
    parts.append("</main></body></html>")
    return "".join(parts)


ERROR_PAGE = "<html><body><h1>Something went wrong</h1></body></html>"
