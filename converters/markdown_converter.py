"""Markdown converter for Medium HTML, driven by the rule table in rules.py."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from markdownify import MarkdownConverter as MarkdownifyConverter

from document import SourceDocument
from fetchers.base_fetcher import BaseFetcher
from models import Post
from .rules import DEFAULT_FENCE, RULES, ConversionContext, ConversionRule, apply_rules

logger = logging.getLogger('medium_hugo_migrator.converters.markdownconverter')

# The post body lives in the e-content section; head, subtitle and footer are metadata
BODY_SELECTORS = ("section[data-field='body']", '.e-content', 'body')


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts a pruned Medium document to Markdown.

    This class extends markdownify.MarkdownConverter: every node is first
    offered to the conversion rules, in order, and only nodes no rule has
    an opinion on fall through to markdownify's tag handling.
    """

    def __init__(self, logger: logging.Logger = None, config: Dict[str, Any] = None,
                 rules: Tuple[ConversionRule, ...] = RULES, **kwargs):
        """Initialize markdown converter with logger and configuration."""
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'escape_asterisks': False,
            'escape_underscores': False,
        }
        markdownify_options.update(kwargs)

        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('medium_hugo_migrator.converters.markdownconverter')
        self.config = config or {}
        self.rules = rules
        self.fence = self.config.get('fence', DEFAULT_FENCE)
        self._context: Optional[ConversionContext] = None

    def convert_post(self, post: Post, fetcher: Optional[BaseFetcher] = None) -> Dict[str, int]:
        """
        Convert the post's document and store the result in post.body.

        Args:
            post: Post whose document has been pruned and rewritten
            fetcher: Used by rules that pull remote content (gists)

        Returns:
            Rule counters for this document (gists converted, gist failures)
        """
        self.logger.debug(f"Converting {post.html_filename} to markdown")

        root = self._body_root(post.document)
        context = ConversionContext(fetcher=fetcher, fence=self.fence, logger=self.logger)
        post.body = self._convert_with_context(root, context)

        self.logger.debug(f"Conversion of {post.html_filename} done: {context.stats}")
        return dict(context.stats)

    def convert_standalone_html(self, html_content: str, fetcher: Optional[BaseFetcher] = None) -> str:
        """Convert an HTML fragment to markdown with the same rules."""
        soup = BeautifulSoup(html_content, 'lxml')
        context = ConversionContext(fetcher=fetcher, fence=self.fence, logger=self.logger)
        return self._convert_with_context(soup, context)

    def _convert_with_context(self, root: Tag, context: ConversionContext) -> str:
        self._context = context
        try:
            raw_markdown = self.convert_soup(root)
        finally:
            self._context = None
        return self._post_process_markdown(raw_markdown)

    @staticmethod
    def _body_root(document: SourceDocument) -> Tag:
        for selector in BODY_SELECTORS:
            node = document.find_first(selector)
            if node is not None:
                return node
        return document.root

    def process_element(self, node, parent_tags=None):
        """Offer node to the rules before markdownify's own handling."""
        if self._context is not None:
            fragment = apply_rules(node, self._context, self.rules)
            if fragment is not None:
                return fragment
        return super().process_element(node, parent_tags=parent_tags)

    def _post_process_markdown(self, markdown: str) -> str:
        """Apply post-processing to generated markdown."""
        markdown = markdown.replace('\u00a0', ' ')
        markdown = self._final_cleanup(markdown)
        return markdown.strip()

    def _final_cleanup(self, markdown: str) -> str:
        """Collapse runs of blank lines outside fenced code blocks."""
        result: List[str] = []
        in_code_block = False
        blank_run = 0

        for line in markdown.split('\n'):
            if line.strip().startswith(self.fence):
                in_code_block = not in_code_block
                blank_run = 0
                result.append(line)
                continue

            if not in_code_block:
                line = line.rstrip()
                if not line:
                    blank_run += 1
                    if blank_run > 1:
                        continue
                else:
                    blank_run = 0

            result.append(line)

        return '\n'.join(result)

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Handle images."""
        src = el.get('src', '')
        alt = el.get('alt', '')
        title = el.get('title', '')

        # Use title as alt if alt is missing
        if not alt and title:
            alt = title

        return f'![{alt}]({src})'
