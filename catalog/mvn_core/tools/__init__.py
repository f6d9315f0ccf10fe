"""
CLI tools for the catalog core.

- mvn-catalog: inspect, validate and mint URNs; run aggregation offline

Invariants:
    - Tools work offline (no running service required)
    - Output is JSON on stdout, diagnostics on stderr
"""

from .catalog_cli import CatalogCLI

__all__ = ["CatalogCLI"]
