"""
Data model for the PCI ID Repository.

This module defines dataclasses for the two hierarchies found in a pci.ids
file: Vendor -> Device -> Subsystem, and
DeviceClass -> DeviceSubclass -> ProgramInterface.
"""

from bisect import insort
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


# Identifier widths in bits
VENDOR_ID_BITS = 16
DEVICE_ID_BITS = 16
SUBSYSTEM_ID_BITS = 16
CLASS_ID_BITS = 8
SUBCLASS_ID_BITS = 8
PROG_IF_ID_BITS = 8


def require_unsigned(value: int, bits: int, label: str) -> int:
    """Check that value is an int fitting in the given number of bits."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer: {value!r}")
    limit = (1 << bits) - 1
    if value < 0 or value > limit:
        raise ValueError(f"{label} ({value}) should be between 0 and 0x{limit:x}")
    return value


def require_non_blank(value: str, label: str) -> str:
    """Check that value is a string with non-whitespace content."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} must not be blank: {value!r}")
    return value


def _put_sorted(mapping: dict, key: int, value) -> None:
    """Insert into a dict, keeping its keys in ascending order."""
    if not mapping or key in mapping or key > next(reversed(mapping)):
        mapping[key] = value
        return
    mapping[key] = value
    items = sorted(mapping.items())
    mapping.clear()
    mapping.update(items)


# ============================================================================
# Vendor tree
# ============================================================================

@dataclass(eq=False, frozen=True)
class Subsystem:
    """Subsystem (subvendor, subdevice) alias of a device."""
    id: int
    name: str
    comment: Optional[str] = None
    vendor_id: int = 0  # subsystem vendor, not resolved against the database

    def __post_init__(self):
        require_unsigned(self.id, SUBSYSTEM_ID_BITS, "Subsystem ID")
        require_unsigned(self.vendor_id, VENDOR_ID_BITS, "Subsystem vendor ID")
        require_non_blank(self.name, "Subsystem name")
        object.__setattr__(self, "comment", self.comment or None)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.vendor_id, self.id)

    def __eq__(self, other):
        if not isinstance(other, Subsystem):
            return NotImplemented
        return (self.id, self.name, self.vendor_id) == (other.id, other.name, other.vendor_id)

    def __hash__(self):
        return hash((self.id, self.name, self.vendor_id))

    def __str__(self) -> str:
        return f"{self.vendor_id:04x} {self.id:04x}  {self.name}"


@dataclass(eq=False, frozen=True)
class Device:
    """PCI device of a vendor."""
    id: int
    name: str
    comment: Optional[str] = None
    _subsystems: list[Subsystem] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        require_unsigned(self.id, DEVICE_ID_BITS, "Device ID")
        require_non_blank(self.name, "Device name")
        object.__setattr__(self, "comment", self.comment or None)

    @property
    def subsystems(self) -> tuple[Subsystem, ...]:
        """Subsystems ordered by (vendor_id, id); duplicates are kept."""
        return tuple(self._subsystems)

    def _add_subsystem(self, subsystem: Subsystem) -> None:
        insort(self._subsystems, subsystem, key=lambda s: s.sort_key)

    def __eq__(self, other):
        if not isinstance(other, Device):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def __hash__(self):
        return hash((self.id, self.name))

    def __str__(self) -> str:
        return f"{self.id:04x}  {self.name}"


@dataclass(eq=False, frozen=True)
class Vendor:
    """PCI vendor."""
    id: int
    name: str
    comment: Optional[str] = None
    _devices: dict[int, Device] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        require_unsigned(self.id, VENDOR_ID_BITS, "Vendor ID")
        require_non_blank(self.name, "Vendor name")
        object.__setattr__(self, "comment", self.comment or None)

    @property
    def devices(self) -> Mapping[int, Device]:
        """Read-only view of the devices, keyed and ordered by device ID."""
        return MappingProxyType(self._devices)

    def _add_device(self, device: Device) -> None:
        _put_sorted(self._devices, device.id, device)

    def __eq__(self, other):
        if not isinstance(other, Vendor):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def __hash__(self):
        return hash((self.id, self.name))

    def __str__(self) -> str:
        return f"{self.id:04x}  {self.name}"


# ============================================================================
# Device class tree
# ============================================================================

@dataclass(eq=False, frozen=True)
class ProgramInterface:
    """Programming interface of a device subclass."""
    id: int
    name: str
    comment: Optional[str] = None

    def __post_init__(self):
        require_unsigned(self.id, PROG_IF_ID_BITS, "Program interface ID")
        require_non_blank(self.name, "Program interface name")
        object.__setattr__(self, "comment", self.comment or None)

    def __eq__(self, other):
        if not isinstance(other, ProgramInterface):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def __hash__(self):
        return hash((self.id, self.name))

    def __str__(self) -> str:
        return f"{self.id:02x}  {self.name}"


@dataclass(eq=False, frozen=True)
class DeviceSubclass:
    """Subclass of a device class."""
    id: int
    name: str
    comment: Optional[str] = None
    _program_interfaces: dict[int, ProgramInterface] = field(
        default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        require_unsigned(self.id, SUBCLASS_ID_BITS, "Device subclass ID")
        require_non_blank(self.name, "Device subclass name")
        object.__setattr__(self, "comment", self.comment or None)

    @property
    def program_interfaces(self) -> Mapping[int, ProgramInterface]:
        """Read-only view of the program interfaces, ordered by ID."""
        return MappingProxyType(self._program_interfaces)

    def _add_program_interface(self, prog_if: ProgramInterface) -> None:
        _put_sorted(self._program_interfaces, prog_if.id, prog_if)

    def __eq__(self, other):
        if not isinstance(other, DeviceSubclass):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def __hash__(self):
        return hash((self.id, self.name))

    def __str__(self) -> str:
        return f"{self.id:02x}  {self.name}"


@dataclass(eq=False, frozen=True)
class DeviceClass:
    """PCI device class."""
    id: int
    name: str
    comment: Optional[str] = None
    _subclasses: dict[int, DeviceSubclass] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        require_unsigned(self.id, CLASS_ID_BITS, "Device class ID")
        require_non_blank(self.name, "Device class name")
        object.__setattr__(self, "comment", self.comment or None)

    @property
    def subclasses(self) -> Mapping[int, DeviceSubclass]:
        """Read-only view of the subclasses, ordered by ID."""
        return MappingProxyType(self._subclasses)

    def _add_subclass(self, subclass: DeviceSubclass) -> None:
        _put_sorted(self._subclasses, subclass.id, subclass)

    def __eq__(self, other):
        if not isinstance(other, DeviceClass):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def __hash__(self):
        return hash((self.id, self.name))

    def __str__(self) -> str:
        return f"C {self.id:02x}  {self.name}"
