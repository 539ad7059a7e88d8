"""Subscriber login through the publication's authentication provider."""

from __future__ import annotations

import logging

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import HOME_URL, Credentials
from .loader import PageLoader

logger = logging.getLogger("edition_archiver")

COOKIE_ACCEPT_SELECTOR = "#_evidon-banner-acceptbutton"
LOGIN_LINK_SELECTOR = ".ds-masthead-nav-beta__item--log-in"
EMAIL_SELECTOR = "input[type=email]"
PASSWORD_SELECTOR = "input[type=password]"


async def log_in(loader: PageLoader, credentials: Credentials) -> None:
    """Fill the login form and wait for the redirect back to the site."""
    page = loader.page
    await loader.load(HOME_URL)
    try:
        await page.click(COOKIE_ACCEPT_SELECTOR, timeout=5000)
    except PlaywrightTimeoutError:
        logger.debug("No cookie banner to dismiss")

    await page.click(LOGIN_LINK_SELECTOR)
    await page.wait_for_load_state("load")
    await page.fill(EMAIL_SELECTOR, credentials.username)
    await page.fill(PASSWORD_SELECTOR, credentials.password)
    await page.press(PASSWORD_SELECTOR, "Enter")
    logger.info("Submitted login for %s", credentials.username)
    await loader.load_authenticated_landing()
