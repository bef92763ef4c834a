"""
PCI ID Repository parser

A Python library to parse the pci.ids database into vendor/device/subsystem
and device class/subclass/program interface trees, and look entries up by ID.
"""

__version__ = "0.1.0"

from .model import (
    Vendor,
    Device,
    Subsystem,
    DeviceClass,
    DeviceSubclass,
    ProgramInterface,
)
from .parser import (
    LineType,
    ParseError,
    ClassificationError,
    MalformedLineError,
    StructuralError,
    DatabaseParseError,
    classify,
    parse,
)
from .database import PciIdsDatabase, find_database_file

__all__ = [
    "Vendor",
    "Device",
    "Subsystem",
    "DeviceClass",
    "DeviceSubclass",
    "ProgramInterface",
    "LineType",
    "ParseError",
    "ClassificationError",
    "MalformedLineError",
    "StructuralError",
    "DatabaseParseError",
    "classify",
    "parse",
    "PciIdsDatabase",
    "find_database_file",
]
