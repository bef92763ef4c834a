"""
Parser for the PCI ID Repository database (pci.ids).

The format is line oriented and indentation sensitive. Each line is first
classified using the type of the previous structural (non-comment) line,
then matched against the grammar of its kind, and finally folded into the
vendor tree or the device class tree.
"""

import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .model import (
    Vendor,
    Device,
    Subsystem,
    DeviceClass,
    DeviceSubclass,
    ProgramInterface,
)

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Exception raised when parsing fails."""
    pass


class LineError(ParseError):
    """A single line of the database could not be accepted."""

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line
        self.line_number: Optional[int] = None


class ClassificationError(LineError):
    """Line prefix is not allowed after the previous line type."""
    pass


class MalformedLineError(LineError):
    """Line was classified but does not match the grammar of its type."""
    pass


class StructuralError(LineError):
    """Line needs a parent entry that is not currently open."""
    pass


class DatabaseParseError(ParseError):
    """Parsing the database failed; the original error is the cause."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class LineType(Enum):
    """Kinds of lines found in a pci.ids file."""
    COMMENT = "comment"
    VENDOR = "vendor"
    DEVICE = "device"
    SUBSYSTEM = "subsystem"
    DEVICE_CLASS = "device_class"
    DEVICE_SUBCLASS = "device_subclass"
    PROGRAM_INTERFACE = "program_interface"


# Line type of a two-tab line, keyed by the previous structural line type
TWO_TAB_TRANSITIONS: dict[LineType, LineType] = {
    LineType.DEVICE: LineType.SUBSYSTEM,
    LineType.SUBSYSTEM: LineType.SUBSYSTEM,
    LineType.DEVICE_SUBCLASS: LineType.PROGRAM_INTERFACE,
    LineType.PROGRAM_INTERFACE: LineType.PROGRAM_INTERFACE,
}

# Line type of a one-tab line, keyed by the previous structural line type
ONE_TAB_TRANSITIONS: dict[LineType, LineType] = {
    LineType.VENDOR: LineType.DEVICE,
    LineType.DEVICE: LineType.DEVICE,
    LineType.SUBSYSTEM: LineType.DEVICE,
    LineType.DEVICE_CLASS: LineType.DEVICE_SUBCLASS,
    LineType.DEVICE_SUBCLASS: LineType.DEVICE_SUBCLASS,
    LineType.PROGRAM_INTERFACE: LineType.DEVICE_SUBCLASS,
}


def classify(line: str, previous: Optional[LineType]) -> LineType:
    """
    Determine the type of a raw line.

    Args:
        line: Raw line from the database, without line terminator
        previous: Type of the previous structural line, None at start

    Returns:
        The LineType of the line

    Raises:
        ClassificationError: If an indented line cannot follow previous
    """
    if line.startswith("#"):
        return LineType.COMMENT
    if line.startswith("C"):
        return LineType.DEVICE_CLASS
    if line.startswith("\t\t"):
        table = TWO_TAB_TRANSITIONS
    elif line.startswith("\t"):
        table = ONE_TAB_TRANSITIONS
    else:
        return LineType.VENDOR

    try:
        return table[previous]
    except KeyError:
        name = previous.name if previous else None
        raise ClassificationError(
            f"Unexpected previous line type for indented line: {name}", line) from None


# Grammars, matched against the whole line
_HEX4 = r"([0-9a-f]{4})"
_HEX2 = r"([0-9a-f]{2})"

VENDOR_PATTERN = re.compile(_HEX4 + r"\s+(.+)", re.ASCII)
DEVICE_PATTERN = re.compile(r"\t" + _HEX4 + r"\s+(.+)", re.ASCII)
SUBSYSTEM_PATTERN = re.compile(r"\t\t" + _HEX4 + r"\s" + _HEX4 + r"\s+(.+)", re.ASCII)
DEVICE_CLASS_PATTERN = re.compile(r"C\s" + _HEX2 + r"\s+(.+)", re.ASCII)
DEVICE_SUBCLASS_PATTERN = re.compile(r"\t" + _HEX2 + r"\s+(.+)", re.ASCII)
PROGRAM_INTERFACE_PATTERN = re.compile(r"\t\t" + _HEX2 + r"\s+(.+)", re.ASCII)


class CommentBuffer:
    """Collects consecutive comment lines until the next record takes them."""

    def __init__(self):
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        """Add a raw '#' line."""
        self._lines.append(line[1:].strip())

    def clear(self) -> None:
        self._lines = []

    def take(self) -> Optional[str]:
        """Return the pending comment (None if there is none) and clear."""
        text = "\n".join(self._lines).strip("\n")
        self._lines = []
        return text or None

    def __bool__(self) -> bool:
        return bool(self._lines)


class LineExtractor:
    """Matches classified lines against their grammar and builds records."""

    def __init__(self, comments: Optional[CommentBuffer] = None):
        self.comments = comments if comments is not None else CommentBuffer()

    def _match(self, pattern: re.Pattern, line: str, kind: str) -> re.Match:
        match = pattern.fullmatch(line)
        if not match:
            raise MalformedLineError(f"Unable to process {kind} line: [{line}]", line)
        return match

    def _build(self, factory, line: str, kind: str, *args, **kwargs):
        try:
            return factory(*args, comment=self.comments.take(), **kwargs)
        except ValueError as e:
            raise MalformedLineError(f"Invalid {kind} line: [{line}]: {e}", line) from e

    def vendor(self, line: str) -> Vendor:
        m = self._match(VENDOR_PATTERN, line, "vendor")
        return self._build(Vendor, line, "vendor", int(m.group(1), 16), m.group(2))

    def device(self, line: str) -> Device:
        m = self._match(DEVICE_PATTERN, line, "device")
        return self._build(Device, line, "device", int(m.group(1), 16), m.group(2))

    def subsystem(self, line: str) -> Subsystem:
        m = self._match(SUBSYSTEM_PATTERN, line, "subsystem")
        return self._build(
            Subsystem, line, "subsystem",
            int(m.group(2), 16), m.group(3), vendor_id=int(m.group(1), 16))

    def device_class(self, line: str) -> DeviceClass:
        m = self._match(DEVICE_CLASS_PATTERN, line, "device class")
        return self._build(DeviceClass, line, "device class", int(m.group(1), 16), m.group(2))

    def device_subclass(self, line: str) -> DeviceSubclass:
        m = self._match(DEVICE_SUBCLASS_PATTERN, line, "device subclass")
        return self._build(DeviceSubclass, line, "device subclass",
                           int(m.group(1), 16), m.group(2))

    def program_interface(self, line: str) -> ProgramInterface:
        m = self._match(PROGRAM_INTERFACE_PATTERN, line, "program interface")
        return self._build(ProgramInterface, line, "program interface",
                           int(m.group(1), 16), m.group(2))


class PciIdsParser:
    """Single-pass builder of the vendor and device class trees."""

    def __init__(self):
        self.comments = CommentBuffer()
        self.extract = LineExtractor(self.comments)
        self.vendors: dict[int, Vendor] = {}
        self.device_classes: dict[int, DeviceClass] = {}
        self.previous: Optional[LineType] = None

        # Open records, committed when the next sibling or parent starts
        self.current_vendor: Optional[Vendor] = None
        self.current_device: Optional[Device] = None
        self.current_class: Optional[DeviceClass] = None
        self.current_subclass: Optional[DeviceSubclass] = None

    def feed(self, line: str) -> None:
        """Process one raw line."""
        line = line.rstrip("\r\n")

        # A blank line drops pending comments, e.g. the file header
        if not line.strip():
            self.comments.clear()
            return

        line_type = classify(line, self.previous)
        if line_type is LineType.COMMENT:
            self.comments.append(line)
            return

        handler = self._handlers[line_type]
        handler(self, line)
        self.previous = line_type

    def _on_vendor(self, line: str) -> None:
        self._close_vendor()
        self.current_vendor = self.extract.vendor(line)

    def _on_device(self, line: str) -> None:
        if self.current_vendor is None:
            raise StructuralError("Device line with no open vendor", line)
        self._close_device()
        self.current_device = self.extract.device(line)

    def _on_subsystem(self, line: str) -> None:
        if self.current_device is None:
            raise StructuralError("Subsystem line with no open device", line)
        self.current_device._add_subsystem(self.extract.subsystem(line))

    def _on_device_class(self, line: str) -> None:
        self._close_class()
        self.current_class = self.extract.device_class(line)

    def _on_device_subclass(self, line: str) -> None:
        if self.current_class is None:
            raise StructuralError("Device subclass line with no open device class", line)
        self._close_subclass()
        self.current_subclass = self.extract.device_subclass(line)

    def _on_program_interface(self, line: str) -> None:
        if self.current_subclass is None:
            raise StructuralError("Program interface line with no open device subclass", line)
        self.current_subclass._add_program_interface(self.extract.program_interface(line))

    _handlers = {
        LineType.VENDOR: _on_vendor,
        LineType.DEVICE: _on_device,
        LineType.SUBSYSTEM: _on_subsystem,
        LineType.DEVICE_CLASS: _on_device_class,
        LineType.DEVICE_SUBCLASS: _on_device_subclass,
        LineType.PROGRAM_INTERFACE: _on_program_interface,
    }

    def _close_device(self) -> None:
        if self.current_device is not None:
            self.current_vendor._add_device(self.current_device)
            self.current_device = None

    def _close_vendor(self) -> None:
        self._close_device()
        if self.current_vendor is not None:
            self.vendors[self.current_vendor.id] = self.current_vendor
            self.current_vendor = None

    def _close_subclass(self) -> None:
        if self.current_subclass is not None:
            self.current_class._add_subclass(self.current_subclass)
            self.current_subclass = None

    def _close_class(self) -> None:
        self._close_subclass()
        if self.current_class is not None:
            self.device_classes[self.current_class.id] = self.current_class
            self.current_class = None

    def finish(self) -> tuple[Mapping[int, Vendor], Mapping[int, DeviceClass]]:
        """Commit all open records and return read-only (vendors, device_classes)."""
        self._close_vendor()
        self._close_class()
        vendors = dict(sorted(self.vendors.items()))
        device_classes = dict(sorted(self.device_classes.items()))
        logger.debug("Parsed %d vendors and %d device classes",
                     len(vendors), len(device_classes))
        return MappingProxyType(vendors), MappingProxyType(device_classes)


def parse(lines: Iterable[str]) -> tuple[Mapping[int, Vendor], Mapping[int, DeviceClass]]:
    """
    Parse pci.ids content into vendor and device class maps.

    Args:
        lines: Iterable of lines, e.g. a list of strings or an open text file

    Returns:
        Tuple of (vendors, device_classes), read-only mappings ordered by ID

    Raises:
        DatabaseParseError: If any line is rejected or the line source
            fails while being read. The original error is available as
            __cause__.
    """
    parser = PciIdsParser()
    line_number = 0
    line = None
    try:
        for line_number, line in enumerate(lines, 1):
            parser.feed(line)
        return parser.finish()
    except LineError as e:
        e.line_number = line_number
        raise DatabaseParseError(
            f"Error while parsing database file at line {line_number}: {e}",
            line_number, e.line) from e
    except Exception as e:
        raise DatabaseParseError(
            f"Error while parsing database file at line {line_number}: {e}",
            line_number, line) from e


def parse_pci_ids(text: str) -> tuple[Mapping[int, Vendor], Mapping[int, DeviceClass]]:
    """Parse pci.ids content given as a single string."""
    return parse(text.splitlines())

