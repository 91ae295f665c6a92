"""
Record Builder Module

Maps matched nodes to flat records using an extraction plan, and collects
the records into a ``ResultTable``.

A plan is an ordered sequence of ``(field_name, rule)`` pairs. Every rule
locates a sub-node relative to the record's node and reads something from
it. A sub-node that is not there yields an absent value instead of an
error, so one missing optional element never costs the rest of the record:

- ``Text`` / ``Attr``: ``None``
- ``Present``: ``False``
- ``AllText``: ``[]``
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from harvester.parsing.document import Node
from harvester.parsing.filters import Filter, Query


@dataclass(frozen=True, init=False)
class Locator:
    """
    Where a rule looks, relative to the record's node.

    ``Locator()`` with no tag and no filters means the record's node itself.

    Example:
        Locator("span", ClassContains("text"))
    """

    tag: Optional[str] = None
    filters: Tuple[Filter, ...] = ()

    def __init__(self, tag: Optional[str] = None, *filters: Filter):
        object.__setattr__(self, "tag", tag)
        object.__setattr__(self, "filters", tuple(filters))

    @property
    def query(self) -> Query:
        return Query(self.tag, self.filters)

    def first(self, node: Node) -> Optional[Node]:
        if self.query.is_empty:
            return node
        return node.query_first(self.query)

    def all(self, node: Node) -> List[Node]:
        if self.query.is_empty:
            return [node]
        return node.query_all(self.query)


SELF = Locator()


@dataclass(frozen=True)
class Text:
    """Whitespace-collapsed text of the located sub-node."""

    locator: Locator = SELF

    def extract(self, node: Node) -> Optional[str]:
        target = self.locator.first(node)
        if target is None:
            return None
        return " ".join(target.text_content().split())


@dataclass(frozen=True)
class Attr:
    """Value of attribute ``name`` on the located sub-node."""

    locator: Locator
    name: str

    def extract(self, node: Node) -> Optional[str]:
        target = self.locator.first(node)
        if target is None:
            return None
        return target.attribute(self.name)


@dataclass(frozen=True)
class Present:
    """Whether the located sub-node exists."""

    locator: Locator

    def extract(self, node: Node) -> bool:
        return self.locator.first(node) is not None


@dataclass(frozen=True)
class AllText:
    """Texts of every matching sub-node, in document order."""

    locator: Locator

    def extract(self, node: Node) -> List[str]:
        return [" ".join(n.text_content().split()) for n in self.locator.all(node)]


@dataclass(frozen=True)
class Group:
    """
    A structured sub-value: a nested record built from its own plan.

    Example (a coordinate pair):
        Group(plan=(
            ("lat", Attr(Locator("span", ClassContains("geo")), "data-lat")),
            ("lon", Attr(Locator("span", ClassContains("geo")), "data-lon")),
        ))
    """

    plan: "Plan"

    def extract(self, node: Node) -> Dict[str, Any]:
        return build_record(node, self.plan)


Rule = Union[Text, Attr, Present, AllText, Group]
Plan = Sequence[Tuple[str, Rule]]


@dataclass(frozen=True)
class ResultTable:
    """
    Ordered, immutable collection of extracted records.

    The table keeps its own deep copies of the records; lists and groups
    handed out by it never alias the stored values.

    Records keep discovery order. Columns are the field names in the order
    they were first seen.

    Example:
        table = build_records(doc.find_all("div", ClassContains("quote")), plan)
        for row in table.rows():
            print(row)
    """

    records: Tuple[Dict[str, Any], ...] = ()
    _columns: Tuple[str, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "records", tuple(copy.deepcopy(r) for r in self.records))
        columns: List[str] = []
        for record in self.records:
            for key in record:
                if key not in columns:
                    columns.append(key)
        object.__setattr__(self, "_columns", tuple(columns))

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.to_dicts())

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return copy.deepcopy(self.records[index])

    def rows(self) -> List[List[Any]]:
        """One list per record following ``columns``; missing fields are None."""
        return [[record.get(col) for col in self._columns] for record in self.records]

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Deep copies of the records, safe for the caller to modify."""
        return [copy.deepcopy(record) for record in self.records]

    def concat(self, other: "ResultTable") -> "ResultTable":
        """A new table holding this table's records followed by ``other``'s."""
        return ResultTable(self.records + other.records)


def build_record(node: Node, plan: Plan) -> Dict[str, Any]:
    """
    Run every rule of a plan against one node.

    Args:
        node: The node the record describes
        plan: Ordered (field_name, rule) pairs

    Returns:
        Dict with one entry per plan field, in plan order
    """
    return {name: rule.extract(node) for name, rule in plan}


def build_records(nodes: Iterable[Node], plan: Plan) -> ResultTable:
    """Build one record per node, preserving node order."""
    return ResultTable(tuple(build_record(node, plan) for node in nodes))
