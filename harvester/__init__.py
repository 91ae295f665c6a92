"""
Harvester - A sequential content-extraction pipeline.

This package provides:
- Static (HTTP) and dynamic (headless browser) page fetching
- Markup normalization
- A navigable document tree with structural queries
- Plan-driven record extraction into tabular results
- JSON / CSV / SQLite export
"""

__version__ = "1.0.0"
__author__ = "Harvester contributors"
