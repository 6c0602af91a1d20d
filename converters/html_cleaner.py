"""HTML cleaner for removing Medium-specific markup before conversion."""

import logging
from typing import Dict

from document import SourceDocument

MIXTAPE_ANCHOR_SELECTOR = '.graf .markup--mixtapeEmbed-anchor'
MIXTAPE_THUMBNAIL_SELECTOR = '.graf a.mixtapeImage'
TITLE_HEADING_SELECTOR = 'h3.graf--title'


class HtmlCleaner:
    """Strips Medium decoration that has no Markdown equivalent."""

    def __init__(self, logger: logging.Logger = None):
        """Initialize HTML cleaner with optional logger."""
        self.logger = logger or logging.getLogger('medium_hugo_migrator.converters.htmlcleaner')

    def clean(self, document: SourceDocument) -> Dict[str, int]:
        """
        Prune the document in place.

        Running clean twice leaves the tree exactly as after the first run.

        Args:
            document: Parsed Medium post

        Returns:
            Number of elements touched, per kind
        """
        self.logger.debug("Cleaning Medium HTML")

        stats = {
            'preview_cards': self._collapse_preview_cards(document),
            'thumbnails': self._remove_all(document, MIXTAPE_THUMBNAIL_SELECTOR),
            'title_headings': self._remove_all(document, TITLE_HEADING_SELECTOR),
            'h1_headings': self._remove_all(document, 'h1'),
        }

        self.logger.debug(f"HTML cleaning completed: {stats}")
        return stats

    def _collapse_preview_cards(self, document: SourceDocument) -> int:
        """
        Reduce link preview boxes to their title text.

        A preview card is an anchor holding <strong>title</strong><br><em>description</em>;
        only the title survives.
        """
        collapsed = 0
        for link in document.find(MIXTAPE_ANCHOR_SELECTOR):
            title = document.find_first('strong', link)
            if title is None:
                continue

            document.set_text(link, title.get_text().strip())
            collapsed += 1

        return collapsed

    @staticmethod
    def _remove_all(document: SourceDocument, selector: str) -> int:
        elements = document.find(selector)
        for element in elements:
            document.remove(element)
        return len(elements)
