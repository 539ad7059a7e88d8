"""Data models used throughout the archiving pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Section:
    """A named group of article links, in table-of-contents order."""

    title: str
    articles: List[str] = field(default_factory=list)


@dataclass
class Edition:
    """One weekly issue as read from the edition landing page."""

    title: str
    cover: Optional[str]
    sections: List[Section] = field(default_factory=list)


@dataclass(frozen=True)
class Article:
    """Extracted article content with image sources already made local."""

    source_url: str
    headline: str
    subheadline: str
    description: str
    image: Optional[str]
    content: str
    images: List[str] = field(default_factory=list)


@dataclass
class ImageAsset:
    """Image re-encoded in the browser and stored on disk."""

    source_url: str
    filename: str
    relative_path: str
    size: int
