"""
Text rendering of PCI ID database entries.

This module renders vendors, devices and device classes as indented text
trees and database summaries.
"""

from typing import Iterable

from .database import PciIdsDatabase
from .model import Vendor, Device, DeviceClass


def render_summary(database: PciIdsDatabase, width: int = 60) -> str:
    """
    Render entry counts of a database.

    Args:
        database: The database to summarize
        width: Width of the horizontal rules

    Returns:
        Multi-line summary text
    """
    stats = database.stats()
    lines = []

    lines.append("=" * width)
    lines.append("PCI ID DATABASE")
    lines.append("=" * width)
    lines.append("")
    lines.append("Vendor tree")
    lines.append("-" * 40)
    lines.append(f"  Vendors:            {stats['vendors']}")
    lines.append(f"  Devices:            {stats['devices']}")
    lines.append(f"  Subsystems:         {stats['subsystems']}")
    lines.append("")
    lines.append("Device class tree")
    lines.append("-" * 40)
    lines.append(f"  Classes:            {stats['device_classes']}")
    lines.append(f"  Subclasses:         {stats['device_subclasses']}")
    lines.append(f"  Program interfaces: {stats['program_interfaces']}")

    return "\n".join(lines)


def _comment_lines(comment, indent: str) -> list[str]:
    if not comment:
        return []
    return [f"{indent}# {text}" if text else f"{indent}#" for text in comment.split("\n")]


def render_device(device: Device, subsystems: bool = True, indent: str = "") -> str:
    """Render a device and, optionally, its subsystems."""
    lines = _comment_lines(device.comment, indent)
    lines.append(f"{indent}{device}")
    if subsystems:
        for subsystem in device.subsystems:
            lines.extend(_comment_lines(subsystem.comment, indent + "    "))
            lines.append(f"{indent}    {subsystem}")
    return "\n".join(lines)


def render_vendor(vendor: Vendor, subsystems: bool = False) -> str:
    """Render a vendor with its devices."""
    lines = _comment_lines(vendor.comment, "")
    lines.append(str(vendor))
    for device in vendor.devices.values():
        lines.append(render_device(device, subsystems=subsystems, indent="    "))
    return "\n".join(lines)


def render_device_class(device_class: DeviceClass) -> str:
    """Render a device class with its subclasses and program interfaces."""
    lines = _comment_lines(device_class.comment, "")
    lines.append(str(device_class))
    for subclass in device_class.subclasses.values():
        lines.extend(_comment_lines(subclass.comment, "    "))
        lines.append(f"    {subclass}")
        for prog_if in subclass.program_interfaces.values():
            lines.extend(_comment_lines(prog_if.comment, "        "))
            lines.append(f"        {prog_if}")
    return "\n".join(lines)


def render_vendor_list(vendors: Iterable[Vendor]) -> str:
    """One line per vendor: ID, device count and name."""
    lines = []
    for vendor in vendors:
        lines.append(f"{vendor.id:04x}  {len(vendor.devices):5d}  {vendor.name}")
    return "\n".join(lines)


def render_class_list(device_classes: Iterable[DeviceClass]) -> str:
    """One line per device class: ID, subclass count and name."""
    lines = []
    for device_class in device_classes:
        lines.append(f"{device_class.id:02x}  {len(device_class.subclasses):3d}  "
                     f"{device_class.name}")
    return "\n".join(lines)
