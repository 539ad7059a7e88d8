"""Command-line entry point for the edition archiver."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from playwright.async_api import Error as PlaywrightError

from .config import EDITION_URL, ArchiveConfig, load_credentials
from .crawler import run_archiver
from .errors import ArchiverError

logger = logging.getLogger("edition_archiver.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Archive the weekly edition as offline HTML and convert it to EPUB.",
    )
    parser.add_argument(
        "--config",
        default="config.toml",
        type=Path,
        help="TOML file providing username and password",
    )
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where index.html, cover and images should be written",
    )
    parser.add_argument(
        "--epub-dir",
        default=".",
        type=Path,
        help="Directory where the converted EPUB should be written",
    )
    parser.add_argument(
        "--edition",
        default=EDITION_URL,
        help="Edition landing page to archive",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=1.0,
        help="Seconds to wait after an article loads before checking for the error page",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--login-timeout",
        type=float,
        default=300.0,
        help="Seconds to wait for the login redirect to complete",
    )
    parser.add_argument(
        "--max-load-attempts",
        type=int,
        default=10,
        help="Attempts per article before giving up (0 retries forever)",
    )
    parser.add_argument(
        "--retry-backoff",
        type=float,
        default=0.5,
        help="Initial delay in seconds between article retries, doubled each time",
    )
    parser.add_argument(
        "--show-browser",
        action="store_true",
        help="Run Chromium with a visible window",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = ArchiveConfig(
        output_root=Path(args.output).resolve(),
        edition_url=args.edition,
        settle_seconds=args.settle,
        navigation_timeout=args.timeout,
        login_timeout=args.login_timeout,
        max_load_attempts=args.max_load_attempts,
        retry_backoff=args.retry_backoff,
        headless=not args.show_browser,
        epub_dir=Path(args.epub_dir).resolve(),
    )

    try:
        credentials = load_credentials(args.config)
        result = asyncio.run(run_archiver(config, credentials))
    except ArchiverError as exc:
        logger.error("%s", exc)
        return 1
    except PlaywrightError:
        logger.exception("Browser automation failed")
        return 1

    logger.info(
        "Finished %r in %.2fs (%d articles) -> %s",
        result.edition.title,
        result.total_seconds,
        result.article_count,
        result.epub_path or result.html_path,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
