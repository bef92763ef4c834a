"""
Command-line interface for the PCI ID database parser.

Usage:
    pci-ids [options] [query]
    pci-ids -d pci.ids 10de:1b80
    pci-ids c03:00
"""

import argparse
import logging
import sys
from typing import Optional

from .database import PciIdsDatabase
from .parser import ParseError
from .render import (
    render_summary,
    render_vendor,
    render_device,
    render_device_class,
    render_vendor_list,
    render_class_list,
)


class QueryError(ValueError):
    """Raised for a query that is not a valid ID path."""
    pass


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pci-ids",
        description="Look up vendors, devices and device classes in a pci.ids database.",
        epilog="Example: pci-ids 8086:1533   or   pci-ids c02:00",
    )

    parser.add_argument(
        "query",
        nargs="?",
        help="VVVV[:DDDD[:SSSS:ssss]] for vendors or cCC[:SS[:PP]] for classes",
    )

    parser.add_argument(
        "-d", "--database",
        help="Database file, optionally compressed (default: system pci.ids)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["summary", "vendors", "classes", "lookup"],
        default=None,
        help="Output format (default: lookup with a query, summary without)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress warnings and non-essential output",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log progress information",
    )

    parser.add_argument(
        "-v", "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser


def parse_query(query: str) -> tuple[str, list[int]]:
    """
    Split a query into its tree and numeric ID path.

    Returns:
        ("class", [class, subclass, prog_if]) or ("vendor", [vendor, device,
        subvendor, subdevice]), each list truncated to the given components
    """
    text = query.strip().lower()
    if text.startswith("c") and len(text.split(":")[0]) == 3:
        tree, parts, width, max_parts = "class", text[1:].split(":"), 2, 3
    else:
        tree, parts, width, max_parts = "vendor", text.split(":"), 4, 4

    if len(parts) > max_parts or (tree == "vendor" and len(parts) == 3):
        raise QueryError(f"Invalid query: {query}")
    ids = []
    for part in parts:
        if len(part) != width:
            raise QueryError(f"Invalid ID {part!r} in query: {query}")
        try:
            ids.append(int(part, 16))
        except ValueError:
            raise QueryError(f"Invalid ID {part!r} in query: {query}") from None
    return tree, ids


def lookup(database: PciIdsDatabase, query: str) -> Optional[str]:
    """Render the entry a query points to, or None if it is not found."""
    tree, ids = parse_query(query)

    if tree == "class":
        device_class = database.find_device_class(ids[0])
        if device_class is None:
            return None
        if len(ids) == 1:
            return render_device_class(device_class)
        subclass = database.find_device_subclass(ids[0], ids[1])
        if subclass is None:
            return None
        name = f"{device_class.name} / {subclass.name}"
        if len(ids) == 3:
            prog_if = database.find_program_interface(*ids)
            if prog_if is None:
                return None
            name = f"{name} / {prog_if.name}"
        return name

    vendor = database.find_vendor(ids[0])
    if vendor is None:
        return None
    if len(ids) == 1:
        return render_vendor(vendor)
    device = database.find_device(ids[0], ids[1])
    if device is None:
        return None
    if len(ids) == 2:
        return f"{vendor.name}\n" + render_device(device, indent="    ")
    matches = [s for s in database.find_all_subsystems_with_vendor(*ids[:3])
               if s.id == ids[3]]
    if not matches:
        return None
    return "\n".join(f"{vendor.name} / {device.name} / {s.name}" for s in matches)


def load_database(path: Optional[str]) -> PciIdsDatabase:
    """Load the database from a path or the system default."""
    if path:
        return PciIdsDatabase.load(path)
    return PciIdsDatabase.load_default()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"pci-ids {__version__}")
        return 0

    level = logging.INFO if args.verbose else logging.ERROR if args.quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    output_format = args.format or ("lookup" if args.query else "summary")
    if output_format == "lookup" and not args.query:
        print("Error: lookup format needs a query", file=sys.stderr)
        return 1

    try:
        database = load_database(args.database)
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading database: {e}", file=sys.stderr)
        return 1

    if output_format == "summary":
        output = render_summary(database)
    elif output_format == "vendors":
        output = render_vendor_list(database.find_all_vendors())
    elif output_format == "classes":
        output = render_class_list(database.find_all_device_classes())
    else:
        try:
            output = lookup(database, args.query)
        except QueryError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if output is None:
            if not args.quiet:
                print(f"Not found: {args.query}", file=sys.stderr)
            return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
