"""Parsing module - document tree and structural queries."""

from .document import Document, Node, parse_markup
from .filters import AttributeEquals, ClassContains, HasAttribute, Query

__all__ = [
    "Document",
    "Node",
    "parse_markup",
    "AttributeEquals",
    "ClassContains",
    "HasAttribute",
    "Query",
]
