"""
Document Tree Module

Parses markup into a navigable tree and answers structural queries.
Built on BeautifulSoup with the lxml backend, which recovers from
real-world broken HTML the way browsers do.

All queries are read-only and run in document order. Navigation is
element-only: whitespace text between tags never shows up as a child or
sibling, so results do not depend on whether the markup was normalized.
"""

import logging
from typing import Dict, Iterator, List, Optional

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag

from harvester.errors import MalformedMarkupError
from harvester.parsing.filters import Filter, Query


logger = logging.getLogger(__name__)


class Node:
    """
    One element of a parsed document.

    Wraps a BeautifulSoup ``Tag``. Two ``Node`` objects are equal when they
    wrap the same element, so results of different queries can be compared.

    Example:
        doc = parse_markup(html)
        for link in doc.find_all("a"):
            print(link.attribute("href"), link.text_content())
    """

    __slots__ = ("_element",)

    def __init__(self, element: Tag):
        self._element = element

    @property
    def element(self) -> Tag:
        """The underlying BeautifulSoup tag."""
        return self._element

    @property
    def name(self) -> str:
        """Tag label (``[document]`` for the root)."""
        return self._element.name

    @property
    def attributes(self) -> Dict[str, str]:
        """Copy of the attributes, in source order."""
        return dict(self._element.attrs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._element is other._element

    def __hash__(self) -> int:
        return id(self._element)

    def __repr__(self) -> str:
        attrs = " ".join(f'{k}="{v}"' for k, v in self._element.attrs.items())
        return f"<Node {self.name}{' ' + attrs if attrs else ''}>"

    # Queries

    def _iter_matches(self, query: Query) -> Iterator["Node"]:
        for descendant in self._element.descendants:
            if isinstance(descendant, Tag) and query.matches(descendant.name, descendant.attrs):
                yield Node(descendant)

    def find_first(self, tag: Optional[str] = None, *filters: Filter) -> Optional["Node"]:
        """
        First descendant matching a tag name and filters, or None.

        Args:
            tag: Tag name to match (any tag if None)
            *filters: AttributeEquals / ClassContains / HasAttribute filters

        Returns:
            The first match in document order, or None
        """
        return next(self._iter_matches(Query(tag, filters)), None)

    def find_all(self, tag: Optional[str] = None, *filters: Filter) -> List["Node"]:
        """All descendants matching a tag name and filters, in document order."""
        return list(self._iter_matches(Query(tag, filters)))

    def query_first(self, query: Query) -> Optional["Node"]:
        """``find_first`` for a prebuilt ``Query``."""
        return next(self._iter_matches(query), None)

    def query_all(self, query: Query) -> List["Node"]:
        """``find_all`` for a prebuilt ``Query``."""
        return list(self._iter_matches(query))

    # Content

    def text_content(self) -> str:
        """All descendant character data in document order, tags stripped."""
        return self._element.get_text()

    def attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when the element has no such attribute."""
        return self._element.attrs.get(name)

    # Navigation

    @property
    def parent(self) -> Optional["Node"]:
        parent = self._element.parent
        return Node(parent) if parent is not None else None

    @property
    def children(self) -> List["Node"]:
        return [Node(child) for child in self._element.children if isinstance(child, Tag)]

    @property
    def next_sibling(self) -> Optional["Node"]:
        sibling = self._element.find_next_sibling()
        return Node(sibling) if sibling is not None else None

    @property
    def previous_sibling(self) -> Optional["Node"]:
        sibling = self._element.find_previous_sibling()
        return Node(sibling) if sibling is not None else None


class Document(Node):
    """Root of a parsed document. Has no parent and no siblings."""

    __slots__ = ()


def parse_markup(markup: str | bytes, parser: str = "lxml") -> Document:
    """
    Build a document tree from markup.

    Broken HTML (unclosed tags, stray end tags, bad nesting) is repaired
    rather than rejected.

    Args:
        markup: HTML as text or bytes
        parser: BeautifulSoup tree builder

    Returns:
        The document root

    Raises:
        MalformedMarkupError: If the input is not markup at all or the
            parser refuses it
    """
    if not isinstance(markup, (str, bytes)):
        raise MalformedMarkupError(
            f"Expected markup as str or bytes, got {type(markup).__name__}"
        )

    try:
        soup = BeautifulSoup(markup, parser, multi_valued_attributes=None)
    except ParserRejectedMarkup as e:
        raise MalformedMarkupError(f"Parser rejected markup: {e}") from e

    logger.debug(f"Parsed {len(markup)} characters of markup")
    return Document(soup)
