"""Pipeline module - normalization, record building, plans and export."""

from .normalizer import TextCleaner, normalize_markup
from .records import (
    AllText,
    Attr,
    Group,
    Locator,
    Present,
    ResultTable,
    Text,
    build_record,
    build_records,
)
from .plans import ExtractionPlan, load_plan, parse_plan
from .exporters import JSONExporter, CSVExporter, SQLiteExporter, create_exporter

__all__ = [
    "TextCleaner",
    "normalize_markup",
    "AllText",
    "Attr",
    "Group",
    "Locator",
    "Present",
    "ResultTable",
    "Text",
    "build_record",
    "build_records",
    "ExtractionPlan",
    "load_plan",
    "parse_plan",
    "JSONExporter",
    "CSVExporter",
    "SQLiteExporter",
    "create_exporter",
]
