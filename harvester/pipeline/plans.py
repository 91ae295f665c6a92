"""
Extraction Plan Module

An ``ExtractionPlan`` says which nodes become records (the container
locator) and which fields to read from each. Plans can be written in
Python or loaded from JSON, validated with Pydantic:

    {
      "container": {"tag": "div", "classes": ["quote"]},
      "fields": [
        {"name": "text", "rule": "text", "locator": {"tag": "span", "classes": ["text"]}},
        {"name": "author_url", "rule": "attr", "attribute": "href",
         "locator": {"tag": "a", "has": ["href"]}},
        {"name": "tags", "rule": "all_text", "locator": {"tag": "a", "classes": ["tag"]}}
      ]
    }
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from harvester.parsing.document import Node
from harvester.parsing.filters import AttributeEquals, ClassContains, HasAttribute
from harvester.pipeline.records import (
    AllText,
    Attr,
    Group,
    Locator,
    Plan,
    Present,
    ResultTable,
    Rule,
    Text,
    build_records,
)


@dataclass(frozen=True)
class ExtractionPlan:
    """Container locator plus the field plan applied to each container."""

    container: Locator
    fields: Plan

    def extract(self, root: Node) -> ResultTable:
        """One record per container found under ``root``, in document order."""
        return build_records(self.container.all(root), self.fields)


class LocatorSchema(BaseModel):
    """JSON form of a ``Locator``."""

    tag: Optional[str] = None
    classes: List[str] = Field(default_factory=list)
    attributes: Dict[str, str] = Field(default_factory=dict)
    has: List[str] = Field(default_factory=list, description="Attributes that must be present")

    def to_locator(self) -> Locator:
        filters = [ClassContains(name) for name in self.classes]
        filters += [AttributeEquals(name, value) for name, value in self.attributes.items()]
        filters += [HasAttribute(name) for name in self.has]
        return Locator(self.tag, *filters)


class FieldSchema(BaseModel):
    """JSON form of one (field_name, rule) pair."""

    name: str = Field(min_length=1)
    rule: Literal["text", "attr", "present", "all_text", "group"]
    locator: LocatorSchema = Field(default_factory=LocatorSchema)
    attribute: Optional[str] = None
    fields: List["FieldSchema"] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_rule_arguments(self) -> "FieldSchema":
        if self.rule == "attr" and not self.attribute:
            raise ValueError(f"Field '{self.name}': rule 'attr' needs an 'attribute'")
        if self.rule == "group" and not self.fields:
            raise ValueError(f"Field '{self.name}': rule 'group' needs nested 'fields'")
        return self

    def to_rule(self) -> Rule:
        locator = self.locator.to_locator()
        if self.rule == "text":
            return Text(locator)
        if self.rule == "attr":
            return Attr(locator, self.attribute)
        if self.rule == "present":
            return Present(locator)
        if self.rule == "all_text":
            return AllText(locator)
        return Group(tuple((f.name, f.to_rule()) for f in self.fields))


FieldSchema.model_rebuild()


class PlanSchema(BaseModel):
    """JSON form of an ``ExtractionPlan``."""

    container: LocatorSchema = Field(default_factory=LocatorSchema)
    fields: List[FieldSchema] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "PlanSchema":
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names: {', '.join(duplicates)}")
        return self

    def to_plan(self) -> ExtractionPlan:
        return ExtractionPlan(
            container=self.container.to_locator(),
            fields=tuple((f.name, f.to_rule()) for f in self.fields),
        )


def parse_plan(data: dict) -> ExtractionPlan:
    """
    Validate a plan given as a dict.

    Raises:
        pydantic.ValidationError: If the plan is malformed
    """
    return PlanSchema.model_validate(data).to_plan()


def load_plan(path: Path | str) -> ExtractionPlan:
    """Load and validate a JSON plan file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_plan(json.load(f))
