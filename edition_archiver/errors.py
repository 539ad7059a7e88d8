"""Exception types raised by the archiving pipeline."""

from __future__ import annotations


class ArchiverError(Exception):
    """Base class for all archiver failures."""


class ConfigError(ArchiverError):
    """Credentials or settings could not be loaded."""


class AuthenticationError(ArchiverError):
    """The login redirect never returned to the publication site."""


class TableOfContentsError(ArchiverError):
    """The edition landing page could not be read."""


class ArticleLoadError(ArchiverError):
    """An article kept rendering the error page after every retry."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Article {url} failed to load after {attempts} attempt(s)")
        self.url = url
        self.attempts = attempts


class ImageArchiveError(ArchiverError):
    """An image could not be re-encoded or written to disk."""


class AssemblerStateError(ArchiverError):
    """DocumentAssembler methods were called out of order."""
