"""Archive a weekly edition of The Economist as an offline HTML document."""

__version__ = "0.1.0"
