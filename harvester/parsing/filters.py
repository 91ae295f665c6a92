"""
Element filters for structural queries.

Each filter is a small frozen value object with a ``matches(attrs)`` predicate
over an element's attribute mapping. A ``Query`` bundles an optional tag name
with any number of filters, all of which must match.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class AttributeEquals:
    """Attribute ``name`` is present and exactly equal to ``value``."""

    name: str
    value: str

    def matches(self, attrs: Mapping[str, str]) -> bool:
        return attrs.get(self.name) == self.value


@dataclass(frozen=True)
class ClassContains:
    """``name`` appears anywhere in the element's space-separated class list."""

    name: str

    def matches(self, attrs: Mapping[str, str]) -> bool:
        classes = attrs.get("class")
        if not classes:
            return False
        return self.name in classes.split()


@dataclass(frozen=True)
class HasAttribute:
    """Attribute ``name`` is present, whatever its value."""

    name: str

    def matches(self, attrs: Mapping[str, str]) -> bool:
        return self.name in attrs


Filter = Union[AttributeEquals, ClassContains, HasAttribute]


@dataclass(frozen=True)
class Query:
    """
    A tag name plus attribute filters.

    An empty query (no tag, no filters) matches every element.

    Example:
        Query("div", (ClassContains("quote"),))
    """

    tag: Optional[str] = None
    filters: Tuple[Filter, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.tag is None and not self.filters

    def matches(self, name: str, attrs: Mapping[str, str]) -> bool:
        """Check an element's tag name and attributes against the query."""
        if self.tag is not None and name != self.tag.lower():
            return False
        return all(f.matches(attrs) for f in self.filters)
