"""
Gzip-compressed tar serialization of the control and data trees.

Output is byte-reproducible: member mtimes come from the caller, the gzip
header carries no name or timestamp, and the compression level is fixed.
"""

from collections.abc import Iterable, Sequence
import gzip
import io
import tarfile
import zlib

from attrs import define

from pyvider.telemetry import logger

from ..exceptions import ArchiveWriteError, CompressionError, EncodingError
from ..models import (
    CONTROL_FILE_NAME,
    CONTROL_MEMBER_ORDER,
    DEFAULT_DIR_MODE,
    DEFAULT_FILE_MODE,
    MD5SUMS_FILE_NAME,
    ROOT_USER,
    FileEntry,
)

DEFAULT_COMPRESSLEVEL = 9
ROOT_DIR_NAME = "./"


@define(frozen=True, slots=True)
class TarMember:
    name: str
    content: bytes = b""
    mode: int = DEFAULT_FILE_MODE
    is_dir: bool = False
    uid: int = 0
    gid: int = 0
    owner: str = ROOT_USER
    group: str = ROOT_USER

    def tarinfo(self, mtime: int) -> tarfile.TarInfo:
        info = tarfile.TarInfo(self.name)
        info.type = tarfile.DIRTYPE if self.is_dir else tarfile.REGTYPE
        info.size = 0 if self.is_dir else len(self.content)
        info.mode = self.mode
        info.mtime = mtime
        info.uid = self.uid
        info.gid = self.gid
        info.uname = self.owner
        info.gname = self.group
        return info


def _directory(path: str) -> TarMember:
    name = ROOT_DIR_NAME if not path else f"./{path}/"
    return TarMember(name=name, mode=DEFAULT_DIR_MODE, is_dir=True)


def _encode(field_name: str, text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(field_name, str(e)) from e


def data_members(
    entries: Sequence[FileEntry], *, doc_dir: str | None = None
) -> list[TarMember]:
    """
    Lays out the installed tree: the root directory, the optional
    documentation directory, then each entry preceded by any parent
    directories not already emitted.
    """
    members = [_directory("")]
    emitted: set[str] = set()

    def add_directories(path: str) -> None:
        parts = path.split("/")
        for depth in range(1, len(parts) + 1):
            directory = "/".join(parts[:depth])
            if directory not in emitted:
                emitted.add(directory)
                members.append(_directory(directory))

    if doc_dir:
        add_directories(doc_dir.strip("/"))

    for entry in entries:
        parent, _, _ = entry.path.rpartition("/")
        if parent:
            add_directories(parent)
        members.append(
            TarMember(
                name=f"./{entry.path}",
                content=entry.content,
                mode=entry.mode,
                uid=entry.uid,
                gid=entry.gid,
                owner=entry.owner,
                group=entry.group,
            )
        )
    return members


def pack_members(
    members: Iterable[TarMember],
    *,
    mtime: int = 0,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> bytes:
    buffer = io.BytesIO()
    try:
        with gzip.GzipFile(
            filename="",
            mode="wb",
            compresslevel=compresslevel,
            fileobj=buffer,
            mtime=0,
        ) as gz:
            with tarfile.open(
                fileobj=gz, mode="w", format=tarfile.GNU_FORMAT, encoding="utf-8"
            ) as tar:
                for member in members:
                    payload = None if member.is_dir else io.BytesIO(member.content)
                    tar.addfile(member.tarinfo(mtime), payload)
    except (tarfile.TarError, ValueError) as e:
        raise ArchiveWriteError(f"Failed to write tar archive: {e}") from e
    except (OSError, zlib.error) as e:
        raise CompressionError(f"Failed to compress tar archive: {e}") from e
    return buffer.getvalue()


def pack_data_tree(
    entries: Sequence[FileEntry],
    *,
    mtime: int = 0,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
    doc_dir: str | None = None,
) -> bytes:
    members = data_members(entries, doc_dir=doc_dir)
    archive = pack_members(members, mtime=mtime, compresslevel=compresslevel)
    logger.debug("Packed data archive", members=len(members), size=len(archive))
    return archive


def pack_control_tree(
    control_text: str,
    md5sums_text: str,
    *,
    mtime: int = 0,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> bytes:
    texts = {CONTROL_FILE_NAME: control_text, MD5SUMS_FILE_NAME: md5sums_text}
    members = [
        TarMember(name=name, content=_encode(name, texts[name]))
        for name in CONTROL_MEMBER_ORDER
    ]
    archive = pack_members(members, mtime=mtime, compresslevel=compresslevel)
    logger.debug("Packed control archive", size=len(archive))
    return archive
