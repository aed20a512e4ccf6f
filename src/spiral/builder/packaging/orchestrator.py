"""Core pipeline turning a package descriptor and file entries into a .deb archive."""

from collections.abc import Iterable
from typing import Any

from pyvider.telemetry import logger

from ..exceptions import InvalidDescriptorError, InvalidEntryError
from ..models import DOC_DIR, FileEntry, PackageDescriptor
from .checksums import build_checksums, render_md5sums
from .container import assemble
from .control import render_control
from .tarball import DEFAULT_COMPRESSLEVEL, pack_control_tree, pack_data_tree


def _check_entry_layout(entries: list[FileEntry], reserved_dirs: set[str]) -> None:
    """Rejects duplicate paths and files that would shadow a directory."""
    seen: set[str] = set()
    directories = set(reserved_dirs)
    for entry in entries:
        if entry.path in seen:
            raise InvalidEntryError(entry.path, "duplicate path")
        seen.add(entry.path)
        parts = entry.path.split("/")
        directories.update("/".join(parts[:i]) for i in range(1, len(parts)))
    clashes = seen & directories
    if clashes:
        raise InvalidEntryError(min(clashes), "path is also used as a directory")


class PackageBuilder:
    """
    Builds a single Debian binary package in memory.

    All validation runs in the constructor, so a builder that was created
    successfully only fails in `build()` on an unexpected serialization error.
    """

    def __init__(
        self,
        descriptor: PackageDescriptor,
        entries: Iterable[FileEntry] = (),
        *,
        timestamp: int = 0,
        compresslevel: int = DEFAULT_COMPRESSLEVEL,
        include_doc_dir: bool = True,
    ) -> None:
        if not isinstance(descriptor, PackageDescriptor):
            raise InvalidDescriptorError(
                "descriptor", f"expected a PackageDescriptor, got {type(descriptor).__name__}"
            )
        self.descriptor = descriptor
        self.entries = list(entries)
        for entry in self.entries:
            if not isinstance(entry, FileEntry):
                raise InvalidEntryError(repr(entry), "expected a FileEntry")

        # the ar header stores mtime in a 12-character decimal field
        if (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, int)
            or not 0 <= timestamp < 10**12
        ):
            raise InvalidDescriptorError("timestamp", f"invalid timestamp {timestamp!r}")
        if (
            isinstance(compresslevel, bool)
            or not isinstance(compresslevel, int)
            or not 0 <= compresslevel <= 9
        ):
            raise InvalidDescriptorError(
                "compresslevel", f"compression level must be 0-9, got {compresslevel!r}"
            )
        self.timestamp = timestamp
        self.compresslevel = compresslevel
        self.doc_dir = f"{DOC_DIR}/{descriptor.name}" if include_doc_dir else None

        reserved = set()
        if self.doc_dir:
            parts = self.doc_dir.split("/")
            reserved = {"/".join(parts[:i]) for i in range(1, len(parts) + 1)}
        _check_entry_layout(self.entries, reserved)

    def build(self) -> bytes:
        descriptor = self.descriptor
        logger.info(
            "Building package",
            package=descriptor.name,
            version=descriptor.version,
            architecture=str(descriptor.architecture),
            entries=len(self.entries),
        )

        checksums = build_checksums(self.entries)
        md5sums_text = render_md5sums(checksums)
        logger.debug("Computed checksum manifest", entries=len(checksums))

        control_text = render_control(descriptor)
        logger.debug("Rendered control file", control=control_text)

        control_archive = pack_control_tree(
            control_text,
            md5sums_text,
            mtime=self.timestamp,
            compresslevel=self.compresslevel,
        )
        data_archive = pack_data_tree(
            self.entries,
            mtime=self.timestamp,
            compresslevel=self.compresslevel,
            doc_dir=self.doc_dir,
        )
        package = assemble(control_archive, data_archive, mtime=self.timestamp)

        logger.info(
            "Package built",
            package=descriptor.name,
            filename=descriptor.deb_filename,
            size=len(package),
        )
        return package


def build_package(
    descriptor: PackageDescriptor,
    entries: Iterable[FileEntry] = (),
    **options: Any,
) -> bytes:
    return PackageBuilder(descriptor, entries, **options).build()
