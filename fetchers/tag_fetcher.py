"""Scrapes a published post's live page for its tags."""

import logging
from typing import List, Optional

from document import DocumentParseError, SourceDocument
from models import Post
from .base_fetcher import BaseFetcher, FetcherError, TagFetchError

TAG_SELECTOR = "ul>li>a[href^='/tag']"


class TagFetcher:
    """
    Collects tags for a post from its canonical URL.

    The export does not include tags, so they are read from the live page.
    Drafts have no public page and are never fetched.
    """

    def __init__(self, fetcher: BaseFetcher, logger: Optional[logging.Logger] = None):
        self.fetcher = fetcher
        self.logger = logger or logging.getLogger('medium_hugo_migrator.fetchers.tag_fetcher')

    def populate_tags(self, post: Post) -> List[str]:
        """
        Append the post's tags to post.tags in page order.

        Args:
            post: Post with full_url set by metadata extraction

        Returns:
            The tags that were found (empty for drafts)

        Raises:
            TagFetchError: If the page cannot be fetched or parsed
        """
        if post.draft:
            self.logger.debug(f"Not getting tags for draft: {post.title}")
            return []

        if not post.full_url:
            self.logger.warning(f"No canonical URL for '{post.title}', skipping tags")
            return []

        try:
            page = SourceDocument.parse(self.fetcher.get_bytes(post.full_url))
        except (FetcherError, DocumentParseError) as e:
            raise TagFetchError(f"Could not read tags from {post.full_url}: {e}") from e

        tags = [anchor.get_text(strip=True) for anchor in page.find(TAG_SELECTOR)]
        tags = [tag for tag in tags if tag]
        post.tags.extend(tags)

        self.logger.debug(f"Found {len(tags)} tag(s) for '{post.title}': {tags}")
        return tags


__all__ = ['TagFetcher', 'TAG_SELECTOR']
