"""
Configuration constants for locating and reading pci.ids databases.
"""

import os
from typing import Optional

# Environment variable naming an explicit database file
PCI_IDS_ENV_VAR: str = "PCI_IDS_PATH"

# Encoding of the upstream database
DEFAULT_ENCODING: str = "utf-8"

# Well-known install locations, most common first
DEFAULT_SEARCH_PATHS: tuple[str, ...] = (
    "/usr/share/hwdata/pci.ids",
    "/usr/share/misc/pci.ids",
    "/usr/share/pci.ids",
    "/usr/local/share/hwdata/pci.ids",
    "/usr/local/share/pci.ids",
    "/var/lib/pciutils/pci.ids",
    "/usr/share/hwdata/pci.ids.gz",
    "/usr/share/misc/pci.ids.gz",
)

# File suffix -> compression format understood by the loader
COMPRESSED_SUFFIXES: dict[str, str] = {
    ".gz": "gzip",
    ".xz": "xz",
    ".lzma": "xz",
    ".bz2": "bzip2",
}


def configured_database_path() -> Optional[str]:
    """Return the database path set in the environment, if any."""
    value = os.getenv(PCI_IDS_ENV_VAR, "").strip()
    return value or None


def search_paths() -> list[str]:
    """Candidate database paths, environment override first."""
    paths = list(DEFAULT_SEARCH_PATHS)
    configured = configured_database_path()
    if configured:
        paths.insert(0, configured)
    return paths
