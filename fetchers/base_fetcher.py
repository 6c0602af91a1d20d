"""Abstract byte-fetch interface and fetcher exceptions."""

import logging
from abc import ABC, abstractmethod
from typing import Optional


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class FetchError(FetcherError):
    """A remote resource could not be retrieved."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


class TagFetchError(FetcherError):
    """Tags could not be scraped from a post's live page."""
    pass


class BaseFetcher(ABC):
    """Abstract base class for anything that can fetch remote bytes."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize base fetcher.

        Args:
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.logger = logger or logging.getLogger('medium_hugo_migrator.fetchers')

    @abstractmethod
    def get_bytes(self, url: str) -> bytes:
        """
        Fetch the body of url.

        Args:
            url: Absolute URL

        Returns:
            Response body

        Raises:
            FetchError: On any network or HTTP failure
        """
        pass

    def get_text(self, url: str, encoding: str = 'utf-8') -> str:
        """Fetch url and decode the body as text."""
        return self.get_bytes(url).decode(encoding, errors='replace')


__all__ = ['BaseFetcher', 'FetchError', 'FetcherError', 'TagFetchError']
