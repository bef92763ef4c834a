"""
Queryable PCI ID database.

A PciIdsDatabase is produced by a single parse and is never modified
afterwards, so it can be shared freely between threads.
"""

import bz2
import gzip
import io
import logging
import lzma
import os
from types import MappingProxyType
from typing import BinaryIO, Iterable, Mapping, Optional, TextIO

from . import config
from .model import (
    Vendor,
    Device,
    Subsystem,
    DeviceClass,
    DeviceSubclass,
    ProgramInterface,
)
from .parser import parse

logger = logging.getLogger(__name__)


def open_database_file(path: str, encoding: str = config.DEFAULT_ENCODING) -> TextIO:
    """Open a pci.ids file as text, decompressing by file suffix."""
    suffix = os.path.splitext(str(path))[1].lower()
    compression = config.COMPRESSED_SUFFIXES.get(suffix)
    if compression == "gzip":
        return gzip.open(path, "rt", encoding=encoding)
    if compression == "xz":
        return lzma.open(path, "rt", encoding=encoding)
    if compression == "bzip2":
        return bz2.open(path, "rt", encoding=encoding)
    return open(path, "r", encoding=encoding)


def find_database_file() -> Optional[str]:
    """Return the first existing database file from the search paths."""
    for path in config.search_paths():
        if os.path.isfile(path):
            return path
    return None


class PciIdsDatabase:
    """Read-only vendor and device class database with exact-key lookups."""

    def __init__(self, vendors: Mapping[int, Vendor],
                 device_classes: Mapping[int, DeviceClass]):
        self._vendors = dict(sorted(vendors.items()))
        self._device_classes = dict(sorted(device_classes.items()))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "PciIdsDatabase":
        """Build a database from an iterable of lines."""
        vendors, device_classes = parse(lines)
        return cls(vendors, device_classes)

    @classmethod
    def from_text(cls, text: str) -> "PciIdsDatabase":
        """Build a database from the full file content."""
        return cls.from_lines(text.splitlines())

    @classmethod
    def from_stream(cls, stream: BinaryIO,
                    encoding: str = config.DEFAULT_ENCODING) -> "PciIdsDatabase":
        """
        Build a database from a binary stream.

        The stream is decoded line by line and left open.
        """
        reader = io.TextIOWrapper(stream, encoding=encoding, newline=None)
        try:
            return cls.from_lines(reader)
        finally:
            reader.detach()

    @classmethod
    def load(cls, path, encoding: str = config.DEFAULT_ENCODING) -> "PciIdsDatabase":
        """
        Load a database file.

        Args:
            path: Path to pci.ids, optionally compressed (.gz, .xz, .bz2)
            encoding: Text encoding of the file

        Returns:
            The parsed database

        Raises:
            OSError: If the file cannot be opened
            DatabaseParseError: If the content is not a valid database
        """
        with open_database_file(path, encoding) as f:
            database = cls.from_lines(f)
        logger.info("Loaded %s: %d vendors, %d device classes",
                    path, len(database._vendors), len(database._device_classes))
        return database

    @classmethod
    def load_default(cls) -> "PciIdsDatabase":
        """Load the system database found through the configured search paths."""
        path = find_database_file()
        if path is None:
            raise FileNotFoundError(
                f"No pci.ids database found; set {config.PCI_IDS_ENV_VAR} "
                "or pass a path explicitly")
        return cls.load(path)

    # ------------------------------------------------------------------
    # Vendor tree
    # ------------------------------------------------------------------

    @property
    def vendors(self) -> Mapping[int, Vendor]:
        return MappingProxyType(self._vendors)

    def find_all_vendors(self) -> list[Vendor]:
        return list(self._vendors.values())

    def find_vendor(self, vendor_id: int) -> Optional[Vendor]:
        return self._vendors.get(vendor_id)

    def find_all_devices(self, vendor_id: int) -> list[Device]:
        vendor = self._vendors.get(vendor_id)
        if vendor is None:
            return []
        return list(vendor.devices.values())

    def find_device(self, vendor_id: int, device_id: int) -> Optional[Device]:
        vendor = self._vendors.get(vendor_id)
        if vendor is None:
            return None
        return vendor.devices.get(device_id)

    def find_all_subsystems(self, vendor_id: int, device_id: int) -> list[Subsystem]:
        """All subsystems of a device, ordered by (subvendor ID, subsystem ID)."""
        device = self.find_device(vendor_id, device_id)
        if device is None:
            return []
        return list(device.subsystems)

    def find_all_subsystems_with_vendor(self, vendor_id: int, device_id: int,
                                        subvendor_id: int) -> list[Subsystem]:
        """Subsystems of a device whose subsystem vendor is subvendor_id."""
        return [s for s in self.find_all_subsystems(vendor_id, device_id)
                if s.vendor_id == subvendor_id]

    # ------------------------------------------------------------------
    # Device class tree
    # ------------------------------------------------------------------

    @property
    def device_classes(self) -> Mapping[int, DeviceClass]:
        return MappingProxyType(self._device_classes)

    def find_all_device_classes(self) -> list[DeviceClass]:
        return list(self._device_classes.values())

    def find_device_class(self, class_id: int) -> Optional[DeviceClass]:
        return self._device_classes.get(class_id)

    def find_all_device_subclasses(self, class_id: int) -> list[DeviceSubclass]:
        device_class = self._device_classes.get(class_id)
        if device_class is None:
            return []
        return list(device_class.subclasses.values())

    def find_device_subclass(self, class_id: int, subclass_id: int) -> Optional[DeviceSubclass]:
        device_class = self._device_classes.get(class_id)
        return device_class.subclasses.get(subclass_id) if device_class else None

    def find_all_program_interfaces(self, class_id: int, subclass_id: int) -> list[ProgramInterface]:
        subclass = self.find_device_subclass(class_id, subclass_id)
        if subclass is None:
            return []
        return list(subclass.program_interfaces.values())

    def find_program_interface(self, class_id: int, subclass_id: int,
                               prog_if: int) -> Optional[ProgramInterface]:
        subclass = self.find_device_subclass(class_id, subclass_id)
        if subclass is None:
            return None
        return subclass.program_interfaces.get(prog_if)

    # ------------------------------------------------------------------
    # Naming helpers
    # ------------------------------------------------------------------

    def describe(self, vendor_id: int, device_id: Optional[int] = None,
                 subvendor_id: Optional[int] = None,
                 subdevice_id: Optional[int] = None) -> Optional[str]:
        """
        Return the most specific name known for a device identification.

        Falls back from subsystem to device to vendor name. Returns None if
        the vendor is unknown.
        """
        vendor = self.find_vendor(vendor_id)
        if vendor is None:
            return None
        if device_id is None:
            return vendor.name
        device = vendor.devices.get(device_id)
        if device is None:
            return vendor.name
        if subvendor_id is not None and subdevice_id is not None:
            for subsystem in device.subsystems:
                if subsystem.sort_key == (subvendor_id, subdevice_id):
                    return subsystem.name
        return device.name

    def describe_class(self, class_id: int, subclass_id: Optional[int] = None,
                       prog_if: Optional[int] = None) -> Optional[str]:
        """Most specific name known for a class code, or None."""
        device_class = self.find_device_class(class_id)
        if device_class is None:
            return None
        if subclass_id is None:
            return device_class.name
        subclass = device_class.subclasses.get(subclass_id)
        if subclass is None:
            return device_class.name
        if prog_if is not None:
            interface = subclass.program_interfaces.get(prog_if)
            if interface is not None:
                return interface.name
        return subclass.name

    def stats(self) -> dict[str, int]:
        """Count the entries of each kind."""
        devices = [d for v in self._vendors.values() for d in v.devices.values()]
        subclasses = [s for c in self._device_classes.values() for s in c.subclasses.values()]
        return {
            "vendors": len(self._vendors),
            "devices": len(devices),
            "subsystems": sum(len(d.subsystems) for d in devices),
            "device_classes": len(self._device_classes),
            "device_subclasses": len(subclasses),
            "program_interfaces": sum(len(s.program_interfaces) for s in subclasses),
        }

    def __len__(self) -> int:
        return len(self._vendors)

    def __repr__(self) -> str:
        return (f"PciIdsDatabase(vendors={len(self._vendors)}, "
                f"device_classes={len(self._device_classes)})")
