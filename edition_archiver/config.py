"""Configuration objects and constants for the archiver."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError

HOME_URL = "https://www.economist.com/"
EDITION_URL = "https://www.economist.com/weeklyedition/"
AUTH_DOMAIN = "authenticate.economist.com"
PUBLICATION_NAME = "The Economist"


@dataclass
class Credentials:
    """Login details for the subscriber account."""

    username: str
    password: str


@dataclass
class ArchiveConfig:
    """Top-level settings that control loading, retries and output."""

    output_root: Path
    edition_url: str = EDITION_URL
    settle_seconds: float = 1.0
    navigation_timeout: float = 60.0
    login_timeout: float = 300.0
    max_load_attempts: Optional[int] = 10
    retry_backoff: float = 0.5
    headless: bool = True
    epub_dir: Path = Path(".")

    def __post_init__(self) -> None:
        # Zero or negative means "no limit", matching the original retry-forever policy.
        if self.max_load_attempts is not None and self.max_load_attempts <= 0:
            self.max_load_attempts = None

    @property
    def images_dir(self) -> Path:
        return self.output_root / "images"

    @property
    def index_path(self) -> Path:
        return self.output_root / "index.html"

    @property
    def cover_path(self) -> Path:
        return self.output_root / "cover.png"


def load_credentials(path: Path) -> Credentials:
    """Read ``username`` and ``password`` from a TOML file."""
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid TOML: {exc}") from exc

    missing = [key for key in ("username", "password") if not data.get(key)]
    if missing:
        raise ConfigError(f"Config file {path} is missing: {', '.join(missing)}")
    return Credentials(username=str(data["username"]), password=str(data["password"]))
