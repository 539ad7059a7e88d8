"""Append-only writer for the combined edition document."""

from __future__ import annotations

import html
import logging
from enum import Enum
from pathlib import Path
from typing import IO, Optional

from .config import PUBLICATION_NAME
from .errors import AssemblerStateError
from .models import Article, Edition

logger = logging.getLogger("edition_archiver")

PAGEBREAK = '<div class="pagebreak"></div>'
STYLESHEET_NAME = "style.css"
DEFAULT_STYLESHEET = """\
.pagebreak { page-break-before: always; }
.section { font-size: 2em; font-weight: bold; text-align: center; margin-top: 40%; }
img { max-width: 100%; }
"""
HEADER_TEMPLATE = """\
<html>
<head>
    <meta http-equiv="Content-Type" content="text/html;charset=utf-8" />
    <link href="{stylesheet}" rel="stylesheet" type="text/css" />
    <title>{title}</title>
</head>
<body>
"""
FOOTER = "</body>\n</html>\n"


class _State(Enum):
    CLOSED = "closed"
    OPENED = "opened"
    HEADER = "header"
    SECTION = "section"
    FINISHED = "finished"


class DocumentAssembler:
    """Stream sections and articles into ``index.html`` in traversal order.

    Output is only ever appended and flushed block by block, so an interrupted
    run leaves a readable document ending at the last complete article.
    """

    def __init__(self, edition: Edition) -> None:
        self.edition = edition
        self._handle: Optional[IO[str]] = None
        self._state = _State.CLOSED
        self._sections_written = 0
        self.articles_written = 0

    def open(self, path: Path) -> None:
        if self._state is not _State.CLOSED:
            raise AssemblerStateError("Document is already open")
        path.parent.mkdir(parents=True, exist_ok=True)
        stylesheet = path.parent / STYLESHEET_NAME
        if not stylesheet.exists():
            stylesheet.write_text(DEFAULT_STYLESHEET, encoding="utf-8")
        self._handle = path.open("w", encoding="utf-8")
        self._state = _State.OPENED
        logger.debug("Writing document to %s", path)

    def write_header(self) -> None:
        self._expect(_State.OPENED, action="write the header")
        self._write(
            HEADER_TEMPLATE.format(
                stylesheet=STYLESHEET_NAME,
                title=html.escape(PUBLICATION_NAME),
            )
        )
        self._state = _State.HEADER

    def write_section_marker(self, title: str) -> None:
        self._expect(_State.HEADER, _State.SECTION, action="start a section")
        if self._sections_written >= len(self.edition.sections):
            raise AssemblerStateError("More sections written than the edition contains")
        self._write(f'{PAGEBREAK}<div class="section">{html.escape(title)}</div>\n')
        self._sections_written += 1
        self._state = _State.SECTION

    def write_article(self, article: Article) -> None:
        self._expect(_State.SECTION, action="write an article")
        parts = [PAGEBREAK]
        parts.append(f"<div>{html.escape(article.subheadline)}</div>\n")
        parts.append(f"<h1>{html.escape(article.headline)}</h1>\n")
        parts.append(f"<strong>{html.escape(article.description)}</strong>\n")
        if article.image is not None:
            parts.append(f'<img src="images/{html.escape(article.image)}" />\n')
        parts.append(article.content)
        parts.append("\n")
        self._write("".join(parts))
        self.articles_written += 1

    def close(self) -> None:
        """Write the footer and finish the document."""
        self._expect(_State.HEADER, _State.SECTION, action="close")
        missing = len(self.edition.sections) - self._sections_written
        if missing:
            raise AssemblerStateError(f"Cannot close with {missing} section(s) unwritten")
        self._write(FOOTER)
        self._release()
        self._state = _State.FINISHED
        logger.info("Document finished with %d article(s)", self.articles_written)

    def abort(self) -> None:
        """Close the file without a footer, keeping what was written so far."""
        if self._handle is None:
            return
        self._release()
        self._state = _State.FINISHED
        logger.warning("Document left unfinished after %d article(s)", self.articles_written)

    def _expect(self, *states: _State, action: str) -> None:
        if self._state not in states:
            raise AssemblerStateError(f"Cannot {action} while document is {self._state.value}")

    def _write(self, text: str) -> None:
        assert self._handle is not None
        self._handle.write(text)
        self._handle.flush()

    def _release(self) -> None:
        assert self._handle is not None
        self._handle.close()
        self._handle = None
