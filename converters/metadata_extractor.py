"""Reads post metadata out of a Medium export document."""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dateutil.parser import isoparse

from document import SourceDocument
from models import DRAFT_PREFIX, MARKDOWN_FILE_EXTENSION, Post

logger = logging.getLogger('medium_hugo_migrator.converters.metadata')

UNTITLED_SLUG = 'untitled'

_SPACES = re.compile(r'\s+')
_NOT_ALLOWED = re.compile(r'[^\w.\s]|_')
_LEADING_ARTICLE = re.compile(r'^(a-|the-)')


def generate_slug(title: str) -> str:
    """
    Generate a filesystem friendly slug from a post title.

    '%' and '#' are spelled out, everything but letters, digits, dots and
    whitespace is dropped, whitespace runs become single hyphens and a
    leading 'a-' or 'the-' is removed.

    Example:
        >>> generate_slug("50% Off & The Deal #1")
        '50-percent-off-the-deal-sharp1'
    """
    result = title.replace('%', ' percent').replace('#', ' sharp')
    result = _NOT_ALLOWED.sub('', result)
    result = _SPACES.sub('-', result)
    result = result.lower()
    return _LEADING_ARTICLE.sub('', result)


def date_prefix(date: str) -> Optional[str]:
    """Return the YYYY-MM-DD part of an ISO-8601 timestamp, or None if it doesn't parse."""
    try:
        return isoparse(date).date().isoformat()
    except (ValueError, OverflowError):
        return None


def build_md_filename(post: Post) -> str:
    """
    Build '<prefix>_<slug>.md' for a post.

    The prefix is 'draft_' for drafts and the creation date for published
    posts. A missing or unparsable creation date falls back to the date of
    lastmod. A title that slugs to nothing becomes 'untitled'.
    """
    if post.draft:
        prefix = DRAFT_PREFIX
    else:
        prefix = date_prefix(post.date) if post.date else None
        if prefix is None:
            logger.warning(f"No usable date for {post.html_filename}, using lastmod {post.lastmod}")
            prefix = date_prefix(post.lastmod) or datetime.now(timezone.utc).date().isoformat()

    slug = generate_slug(post.title) or UNTITLED_SLUG
    return f"{prefix}_{slug}{MARKDOWN_FILE_EXTENSION}"


class MetadataExtractor:
    """Pure queries against the microformat classes Medium puts in its export."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('medium_hugo_migrator.converters.metadata')

    def extract(self, post: Post) -> Dict[str, Any]:
        """
        Populate the post's metadata fields from its document.

        Missing elements leave the field empty; nothing here raises.

        Returns:
            The extracted values
        """
        document = post.document

        post.date = self._attr(document, 'time', 'datetime')
        post.author = self._text(document, '.p-author.h-card').strip()
        post.title = self._text(document, 'title').strip()
        if not post.title:
            post.title = f"untitled_{uuid.uuid4()}"
            self.logger.warning(f"{post.html_filename} has no title, using {post.title}")

        post.subtitle = self._text(document, ".p-summary[data-field='subtitle']").strip()
        post.description = self._text(document, ".p-summary[data-field='description']").strip()

        self.set_canonical_name(post)

        metadata = {
            'title': post.title,
            'author': post.author,
            'date': post.date,
            'subtitle': post.subtitle,
            'description': post.description,
            'full_url': post.full_url,
            'canonical': post.canonical,
        }
        self.logger.debug(f"Extracted metadata for {post.html_filename}: {metadata}")
        return metadata

    def set_canonical_name(self, post: Post) -> None:
        """Read the canonical URL and keep its last path segment as the slug."""
        canonical = post.document.find_first('.p-canonical')
        if canonical is None:
            self.logger.debug(f"No canonical link in {post.html_filename}")
            return

        post.full_url = SourceDocument.attr(canonical, 'href') or ''
        if post.full_url:
            # https://medium.com/@user/a-b-tests-developers-manual-f57f5c1a492
            pieces = post.full_url.split('/')
            if len(pieces) > 2:
                post.canonical = pieces[-1]

    @staticmethod
    def _text(document: SourceDocument, selector: str) -> str:
        node = document.find_first(selector)
        return document.text(node) if node is not None else ''

    @staticmethod
    def _attr(document: SourceDocument, selector: str, name: str) -> str:
        node = document.find_first(selector)
        if node is None:
            return ''
        return document.attr(node, name) or ''


__all__ = ['MetadataExtractor', 'build_md_filename', 'date_prefix', 'generate_slug']
