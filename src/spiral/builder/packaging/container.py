"""Assembles the outer ar container of a Debian binary package."""

from pyvider.telemetry import logger

from ..exceptions import ArchiveWriteError
from ..models import (
    AR_NAME_FIELD_SIZE,
    CONTROL_ARCHIVE_MEMBER,
    DATA_ARCHIVE_MEMBER,
    DEBIAN_BINARY_MEMBER,
    DEBIAN_BINARY_VERSION,
    DEB_MEMBER_ORDER,
)

AR_MAGIC = b"!<arch>\n"
AR_HEADER_TERMINATOR = b"`\n"
AR_HEADER_SIZE = 60
AR_MEMBER_MODE = "100644"


def ar_member_header(name: str, size: int, *, mtime: int = 0) -> bytes:
    if not name.isascii() or not 0 < len(name) <= AR_NAME_FIELD_SIZE:
        raise ArchiveWriteError(
            f"ar member name {name!r} must be 1-{AR_NAME_FIELD_SIZE} ASCII characters."
        )
    header = (
        name.ljust(AR_NAME_FIELD_SIZE)
        + str(mtime).ljust(12)
        + "0".ljust(6)  # uid
        + "0".ljust(6)  # gid
        + AR_MEMBER_MODE.ljust(8)
        + str(size).ljust(10)
    ).encode("ascii") + AR_HEADER_TERMINATOR
    if len(header) != AR_HEADER_SIZE:
        raise ArchiveWriteError(
            f"ar header for {name!r} is {len(header)} bytes, expected {AR_HEADER_SIZE}."
        )
    return header


def ar_member(name: str, payload: bytes, *, mtime: int = 0) -> bytes:
    member = ar_member_header(name, len(payload), mtime=mtime) + payload
    if len(payload) % 2:
        member += b"\n"
    return member


def assemble(
    control_archive: bytes | None,
    data_archive: bytes | None,
    *,
    mtime: int = 0,
) -> bytes:
    """
    Writes `debian-binary`, `control.tar.gz` and `data.tar.gz`, in that
    order. Missing inner archives are written as empty members.
    """
    payloads = {
        DEBIAN_BINARY_MEMBER: DEBIAN_BINARY_VERSION,
        CONTROL_ARCHIVE_MEMBER: control_archive or b"",
        DATA_ARCHIVE_MEMBER: data_archive or b"",
    }
    package = AR_MAGIC + b"".join(
        ar_member(name, payloads[name], mtime=mtime) for name in DEB_MEMBER_ORDER
    )
    logger.debug("Assembled package container", size=len(package))
    return package
