"""Link processor for rewriting links to the author's own Medium posts."""

import logging
import re
from typing import Optional

from models import Post

DEFAULT_MEDIUM_BASE_URL = 'https://medium.com'
RICH_LINK_SELECTOR = '.markup--anchor'


class LinkProcessor:
    """Turns absolute links to the author's other posts into site-relative paths."""

    def __init__(self, base_url: str = DEFAULT_MEDIUM_BASE_URL, logger: logging.Logger = None):
        """Initialize link processor with the platform base URL for self-link detection."""
        self.logger = logger or logging.getLogger('medium_hugo_migrator.converters.linkprocessor')
        self.base_url = base_url.rstrip('/')

    def user_base_url(self, username: str) -> str:
        return f"{self.base_url}/@{username}"

    def fix_self_links(self, post: Post, username: Optional[str]) -> int:
        """
        Rewrite self links in the post's document.

        Args:
            post: Post whose document is rewritten in place
            username: Medium username; when missing nothing is rewritten

        Returns:
            Number of anchors rewritten
        """
        if not username:
            self.logger.warning(f"No Medium username known, self links in {post.html_filename} are kept")
            return 0

        document = post.document
        anchors = document.find(RICH_LINK_SELECTOR)
        if not anchors:
            self.logger.debug(f"No anchors found to replace in {post.html_filename}")
            return 0

        # @jan must not match @jane
        self_link = re.compile(re.escape(self.user_base_url(username)) + r'(?=[/?#]|$)')
        rewritten = 0
        for anchor in anchors:
            original = document.attr(anchor, 'href')
            match = self_link.match(original or '')
            if match is None:
                continue

            replaced = original[match.end():] or '/'

            self.logger.debug(f"Self link found: {original} ({anchor.get_text()}) => {replaced}")
            document.set_attr(anchor, 'href', replaced)
            document.set_attr(anchor, 'data-href', replaced)
            rewritten += 1

        return rewritten


__all__ = ['DEFAULT_MEDIUM_BASE_URL', 'LinkProcessor', 'RICH_LINK_SELECTOR']
