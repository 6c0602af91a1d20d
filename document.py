"""Queryable, mutable in-memory tree for one parsed source document."""

import logging
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger('medium_hugo_migrator.document')

Node = Union[BeautifulSoup, Tag]


class DocumentParseError(ValueError):
    """Raised when a source document cannot be parsed."""
    pass


class SourceDocument:
    """
    Wraps a BeautifulSoup tree with the query and mutation operations the
    pipeline stages rely on.

    Selectors are CSS selectors evaluated by bs4's soupsieve engine: tag
    names, classes, descendant combinators, ``[attr]``, ``[attr=value]`` and
    ``[attr^=prefix]`` are all supported.
    """

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup

    @classmethod
    def parse(cls, data: Union[bytes, str]) -> 'SourceDocument':
        """
        Parse HTML into a document.

        Args:
            data: Raw HTML bytes (encoding is detected) or text

        Returns:
            SourceDocument instance

        Raises:
            DocumentParseError: If the input is empty or rejected by the parser
        """
        if data is None or not data.strip():
            raise DocumentParseError("empty document")

        try:
            soup = BeautifulSoup(data, 'lxml')
        except ParserRejectedMarkup as e:
            raise DocumentParseError(f"unparsable document: {e}") from e

        if soup.find() is None:
            raise DocumentParseError("document contains no elements")

        return cls(soup)

    @property
    def root(self) -> BeautifulSoup:
        return self.soup

    # Queries

    def find(self, selector: str, node: Optional[Node] = None) -> List[Tag]:
        """Return all elements matching selector in document order (may be empty)."""
        scope = node if node is not None else self.soup
        return scope.select(selector)

    def find_first(self, selector: str, node: Optional[Node] = None) -> Optional[Tag]:
        """Return the first element matching selector, or None."""
        scope = node if node is not None else self.soup
        return scope.select_one(selector)

    @staticmethod
    def attr(node: Tag, name: str) -> Optional[str]:
        """Return an attribute value as a string, or None when absent."""
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return ' '.join(value)
        return value

    def text(self, node: Optional[Node] = None) -> str:
        """Concatenated text of all descendants."""
        scope = node if node is not None else self.soup
        return scope.get_text()

    def html(self, node: Optional[Node] = None) -> str:
        """Serialized inner markup of a node."""
        scope = node if node is not None else self.soup
        return scope.decode_contents()

    @staticmethod
    def has_class(node: Tag, class_name: str) -> bool:
        return class_name in (node.get('class') or [])

    # Mutations

    @staticmethod
    def set_attr(node: Tag, name: str, value: str) -> None:
        node[name] = value

    @staticmethod
    def remove_attr(node: Tag, name: str) -> None:
        if name in node.attrs:
            del node[name]

    @staticmethod
    def add_class(node: Tag, class_name: str) -> None:
        classes = list(node.get('class') or [])
        if class_name not in classes:
            classes.append(class_name)
        node['class'] = classes

    @staticmethod
    def remove(node: Tag) -> None:
        """Remove a node and its subtree from the document."""
        if not node.decomposed:
            node.decompose()

    @staticmethod
    def set_text(node: Tag, text: str) -> None:
        """Replace all children of node with a single text node."""
        node.clear()
        node.append(text)

    def __str__(self) -> str:
        return str(self.soup)


__all__ = ['DocumentParseError', 'Node', 'SourceDocument']
