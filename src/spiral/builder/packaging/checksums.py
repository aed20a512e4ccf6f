"""Builds the md5sums manifest carried in the control archive."""

from collections.abc import Iterable

from attrs import define

from ..crypto import md5_hexdigest
from ..models import FileEntry


@define(frozen=True, slots=True)
class ChecksumEntry:
    path: str
    digest: str

    def render(self) -> str:
        return f"{self.digest}  {self.path}\n"


def build_checksums(entries: Iterable[FileEntry]) -> list[ChecksumEntry]:
    """One checksum per entry, in input order. Empty files are not skipped."""
    return [ChecksumEntry(entry.path, md5_hexdigest(entry.content)) for entry in entries]


def render_md5sums(checksums: Iterable[ChecksumEntry]) -> str:
    return "".join(checksum.render() for checksum in checksums)
