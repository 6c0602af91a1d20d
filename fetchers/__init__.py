"""Fetchers package for reading the Medium export and remote resources."""

from .base_fetcher import BaseFetcher, FetchError, FetcherError, TagFetchError
from .export_reader import ExportReader, ExportReadError
from .http_client import HttpClient
from .tag_fetcher import TagFetcher

__all__ = [
    'BaseFetcher',
    'ExportReader',
    'ExportReadError',
    'FetchError',
    'FetcherError',
    'HttpClient',
    'TagFetcher',
    'TagFetchError',
]
