"""Hand-off of the finished HTML to Calibre's ``ebook-convert``."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from .config import PUBLICATION_NAME

logger = logging.getLogger("edition_archiver")

CONVERTER_BINARY = "ebook-convert"


def epub_filename(title: str) -> str:
    """Name the e-book after the edition title, e.g. ``Foo – Bar.epub``."""
    return title.replace(": ", " – ").replace("/", "-") + ".epub"


def build_command(
    binary: str,
    html_path: Path,
    output_path: Path,
    title: str,
    cover_path: Optional[Path] = None,
) -> List[str]:
    command = [binary, str(html_path), str(output_path)]
    if cover_path is not None:
        command += ["--cover", str(cover_path)]
    command += [
        "--page-breaks-before", "/",
        "--change-justification", "justify",
        "--authors", PUBLICATION_NAME,
        "--title", title,
    ]
    return command


def convert_to_epub(
    html_path: Path,
    output_dir: Path,
    title: str,
    cover_path: Optional[Path] = None,
) -> Optional[Path]:
    """Convert ``html_path`` to EPUB; returns ``None`` when conversion fails.

    A missing converter or a failing run only costs the e-book, the HTML
    archive stays usable, so neither is raised.
    """
    binary = shutil.which(CONVERTER_BINARY)
    if binary is None:
        logger.error("Couldn't find %s, creating HTML only.", CONVERTER_BINARY)
        return None

    output_path = output_dir / epub_filename(title)
    command = build_command(binary, html_path, output_path, title, cover_path)
    logger.info("Converting %s -> %s", html_path, output_path)
    try:
        subprocess.run(command, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.error("%s failed: %s", CONVERTER_BINARY, exc)
        return None
    return output_path
