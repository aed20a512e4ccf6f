# spiral/src/spiral/builder/__init__.py
"""
This package builds placeholder Debian binary packages (.deb) in memory,
from a package descriptor and an optional list of file entries.
"""

from .exceptions import (
    ArchiveWriteError,
    BuildError,
    CompressionError,
    EncodingError,
    InvalidDescriptorError,
    InvalidEntryError,
)
from .models import (
    DEBIAN_BINARY_VERSION,
    Architecture,
    FileEntry,
    PackageDescriptor,
    Relation,
    RelationKind,
)
from .packaging.orchestrator import PackageBuilder, build_package
from .translate import Lib

__all__ = [
    "DEBIAN_BINARY_VERSION",
    "Architecture",
    "ArchiveWriteError",
    "BuildError",
    "CompressionError",
    "EncodingError",
    "FileEntry",
    "InvalidDescriptorError",
    "InvalidEntryError",
    "Lib",
    "PackageBuilder",
    "PackageDescriptor",
    "Relation",
    "RelationKind",
    "build_package",
]
