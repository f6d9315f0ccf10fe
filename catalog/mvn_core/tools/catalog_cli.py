"""
Catalog CLI tool.

This tool exposes the core to shell scripts and operators:
- parse: Decompose a URN
- validate: Check a URN, optionally against an mvn type
- create / create-error / create-source: Mint URNs
- aggregate: Recompute a series from a JSON export of it and its units
- inherit: Show one unit of an export with series metadata inherited

Usage:
    mvn-catalog parse urn:mvn:series:abc
    mvn-catalog validate urn:mvn:unit:u1 --type unit
    mvn-catalog create series
    mvn-catalog aggregate export.json > series.json
    mvn-catalog inherit export.json urn:mvn:unit:u1 --language en

Export files have the shape {"series": {...}, "units": [{...}, ...]}.

Invariants:
    - Invalid input causes a non-zero exit code
    - Output JSON keys are sorted

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for script parsing
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional

from ..aggregate import get_aggregator
from ..errors import CatalogError, NotFoundError
from ..identity import urn as urn_codec
from ..log import setup_logging
from ..model import Series, Unit

logger = logging.getLogger(__name__)


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def _load_export(path: str) -> tuple[Series, list[Unit]]:
    """Read an export file.

    Raises:
        CatalogError: If the file cannot be read or is not a valid export
    """
    try:
        with open(path) as f:
            data = json.load(f)
        series = Series.from_dict(data["series"])
        units = [Unit.from_dict(u) for u in data.get("units") or ()]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise CatalogError(
            f"Cannot load export file {path}: {e}",
            code="INVALID_EXPORT",
            details={"path": path},
        ) from e
    return series, units


class CatalogCLI:
    """CLI operations for the catalog core.

    Example:
        >>> cli = CatalogCLI()
        >>> cli.parse("urn:MVN:Series:abc")["urn"]
        'urn:mvn:series:abc'
    """

    def parse(self, text: str) -> dict[str, Any]:
        """Decompose a URN.

        Returns:
            {"ok": True, namespace, type, id, urn} or {"ok": False, kind, message}
        """
        result = urn_codec.try_parse(text)
        if not result.ok:
            return {"ok": False, "kind": result.kind.value, "message": str(result.error)}
        urn = result.urn
        return {
            "ok": True,
            "namespace": urn.namespace,
            "type": urn.type,
            "id": urn.id,
            "urn": str(urn),
        }

    def validate(self, text: str, expected_type: Optional[str] = None) -> bool:
        return urn_codec.is_valid(text, expected_type)

    def aggregate(self, path: str) -> dict[str, Any]:
        """Recompute the series in an export file from its units."""
        series, units = _load_export(path)
        series_key = urn_codec.canonical(series.id)
        units = [u for u in units if urn_codec.canonical(u.series_id) == series_key]
        return get_aggregator().recompute(series, units).to_dict()

    def inherit(self, path: str, unit_id: str, language: Optional[str] = None) -> dict[str, Any]:
        """Read-time view of one unit of an export file.

        Raises:
            NotFoundError: If the unit is not in the export
        """
        series, units = _load_export(path)
        wanted = urn_codec.canonical(unit_id)
        for unit in units:
            if urn_codec.canonical(unit.id) == wanted:
                return get_aggregator().inherit(unit, series, language).to_dict()
        raise NotFoundError(f"Unit not found: {wanted}", resource_type="unit", resource_id=wanted)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the catalog tool."""
    parser = argparse.ArgumentParser(description="MVN catalog core tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Decompose a URN")
    parse_parser.add_argument("urn", help="URN text")

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a URN")
    validate_parser.add_argument("urn", help="URN text")
    validate_parser.add_argument("--type", dest="expected_type", help="Required mvn type")

    # create commands
    create_parser = subparsers.add_parser("create", help="Mint a fresh mvn URN")
    create_parser.add_argument("type", help="mvn resource type")

    error_parser = subparsers.add_parser("create-error", help="Build an error URN")
    error_parser.add_argument("code", help="Error code")

    source_parser = subparsers.add_parser("create-source", help="Build a federated URN")
    source_parser.add_argument("source", help="Source system name")
    source_parser.add_argument("id", help="Identifier within the source")

    # aggregation commands
    aggregate_parser = subparsers.add_parser("aggregate", help="Recompute a series export")
    aggregate_parser.add_argument("file", help="Export JSON file")

    inherit_parser = subparsers.add_parser("inherit", help="Show a unit with inherited metadata")
    inherit_parser.add_argument("file", help="Export JSON file")
    inherit_parser.add_argument("unit", help="Unit URN")
    inherit_parser.add_argument("--language", help="ISO 639-1 language code")

    args = parser.parse_args(argv)
    setup_logging()
    cli = CatalogCLI()

    try:
        if args.command == "parse":
            result = cli.parse(args.urn)
            print(_dump(result))
            sys.exit(0 if result["ok"] else 1)

        elif args.command == "validate":
            if cli.validate(args.urn, args.expected_type):
                print("URN is valid")
                sys.exit(0)
            print("URN is invalid")
            sys.exit(1)

        elif args.command == "create":
            print(urn_codec.create(args.type))

        elif args.command == "create-error":
            print(urn_codec.create_error(args.code))

        elif args.command == "create-source":
            print(urn_codec.create_source(args.source, args.id))

        elif args.command == "aggregate":
            print(_dump(cli.aggregate(args.file)))

        elif args.command == "inherit":
            print(_dump(cli.inherit(args.file, args.unit, args.language)))

    except CatalogError as e:
        logger.error("Command failed", extra={"command": args.command, "code": e.code})
        print(_dump({"ok": False, "code": e.code, "message": e.message}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
