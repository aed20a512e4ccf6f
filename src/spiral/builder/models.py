import enum
import re
from typing import Any, Self

from attrs import Attribute, define, field

from .exceptions import EncodingError, InvalidDescriptorError, InvalidEntryError

# Debian binary package format constants
DEBIAN_BINARY_VERSION: bytes = b"2.0\n"
DEBIAN_BINARY_MEMBER: str = "debian-binary"
CONTROL_ARCHIVE_MEMBER: str = "control.tar.gz"
DATA_ARCHIVE_MEMBER: str = "data.tar.gz"
DEB_MEMBER_ORDER: tuple[str, ...] = (
    DEBIAN_BINARY_MEMBER,
    CONTROL_ARCHIVE_MEMBER,
    DATA_ARCHIVE_MEMBER,
)

CONTROL_FILE_NAME: str = "control"
MD5SUMS_FILE_NAME: str = "md5sums"
CONTROL_MEMBER_ORDER: tuple[str, ...] = (CONTROL_FILE_NAME, MD5SUMS_FILE_NAME)

DOC_DIR: str = "usr/share/doc"
DEFAULT_FILE_MODE: int = 0o644
DEFAULT_DIR_MODE: int = 0o755
ROOT_USER: str = "root"

AR_NAME_FIELD_SIZE = 16

if any(len(name) > AR_NAME_FIELD_SIZE for name in DEB_MEMBER_ORDER):
    raise AssertionError(
        f"Container member names must fit the {AR_NAME_FIELD_SIZE}-byte ar name field."
    )

_PACKAGE_NAME_RE = re.compile(r"[a-z0-9][a-z0-9+.-]+")
_EPOCH_RE = re.compile(r"[0-9]+")
_UPSTREAM_RE = re.compile(r"[0-9][A-Za-z0-9.+~-]*")
_UPSTREAM_WITH_EPOCH_RE = re.compile(r"[0-9][A-Za-z0-9.+~:-]*")
_REVISION_RE = re.compile(r"[A-Za-z0-9.+~]+")
_RELATION_RE = re.compile(r"[a-z0-9][a-z0-9+.-]+(:[a-z0-9-]+)?(\s|\(|\[|<|\||$)")


class Architecture(enum.StrEnum):
    AMD64 = "amd64"
    ARM64 = "arm64"
    LOONGSON3 = "loongson3"
    PPC64EL = "ppc64el"
    RISCV64 = "riscv64"
    ARMV4 = "armv4"
    ARMV6HF = "armv6hf"
    ARMV7HF = "armv7hf"
    I486 = "i486"
    LOONGSON2F = "loongson2f"
    M68K = "m68k"
    POWERPC = "powerpc"
    PPC64 = "ppc64"
    I386 = "i386"
    ARMEL = "armel"
    ARMHF = "armhf"
    MIPS64EL = "mips64el"
    S390X = "s390x"
    ALL = "all"

    @classmethod
    def parse(cls, name: str) -> Self:
        """Resolves a canonical architecture name or a common alias."""
        if not isinstance(name, str):
            raise InvalidDescriptorError("architecture", f"expected a string, got {name!r}")
        key = name.strip().lower()
        key = _ARCHITECTURE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise InvalidDescriptorError(
                "architecture", f"unknown architecture {name!r}"
            ) from None


_ARCHITECTURE_ALIASES: dict[str, str] = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "ppc64le": "ppc64el",
    "noarch": "all",
}


class RelationKind(enum.Enum):
    """Dependency relation fields, declared in canonical control-file order."""

    PRE_DEPENDS = "Pre-Depends"
    DEPENDS = "Depends"
    RECOMMENDS = "Recommends"
    SUGGESTS = "Suggests"
    ENHANCES = "Enhances"
    BREAKS = "Breaks"
    CONFLICTS = "Conflicts"
    PROVIDES = "Provides"
    REPLACES = "Replaces"

    @classmethod
    def parse(cls, name: str) -> Self:
        key = str(name).strip().lower().replace("_", "-")
        for kind in cls:
            if kind.value.lower() == key:
                return kind
        raise InvalidDescriptorError("relations", f"unknown relation kind {name!r}")


def check_text(field_name: str, value: Any, *, required: bool, multiline: bool = False) -> None:
    """Rejects text that cannot safely appear in a control-file field."""
    if value is None or value == "":
        if required:
            raise InvalidDescriptorError(field_name, "field is required")
        return
    if not isinstance(value, str):
        raise InvalidDescriptorError(field_name, f"expected a string, got {type(value).__name__}")
    if required and not value.strip():
        raise InvalidDescriptorError(field_name, "field is required")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(field_name, str(e)) from e
    for char in value:
        if char == "\n" and multiline:
            continue
        if char == "\t":
            continue
        if ord(char) < 0x20 or 0x7F <= ord(char) <= 0x9F or char in "\u2028\u2029":
            raise InvalidDescriptorError(
                field_name, f"contains control character {char!r}"
            )


def _required_line(instance: Any, attribute: Attribute, value: Any) -> None:
    check_text(attribute.name, value, required=True)


def _optional_line(instance: Any, attribute: Attribute, value: Any) -> None:
    check_text(attribute.name, value, required=False)


def _optional_block(instance: Any, attribute: Attribute, value: Any) -> None:
    check_text(attribute.name, value, required=False, multiline=True)


def _validate_name(instance: Any, attribute: Attribute, value: Any) -> None:
    check_text(attribute.name, value, required=True)
    if not _PACKAGE_NAME_RE.fullmatch(value):
        raise InvalidDescriptorError(
            attribute.name,
            f"{value!r} must be lowercase alphanumerics, '+', '-' or '.', "
            "at least two characters long",
        )


def split_version(version: str) -> tuple[str | None, str, str | None]:
    """Splits `[epoch:]upstream[-revision]` the way dpkg does."""
    epoch, colon, rest = version.partition(":")
    if not colon:
        epoch, rest = None, version
    upstream, hyphen, revision = rest.rpartition("-")
    if not hyphen:
        return epoch, rest, None
    return epoch, upstream, revision


def _validate_version(instance: Any, attribute: Attribute, value: Any) -> None:
    check_text(attribute.name, value, required=True)
    epoch, upstream, revision = split_version(value)
    if epoch is not None and not _EPOCH_RE.fullmatch(epoch):
        raise InvalidDescriptorError(attribute.name, f"epoch in {value!r} is not a number")
    upstream_re = _UPSTREAM_RE if epoch is None else _UPSTREAM_WITH_EPOCH_RE
    if not upstream_re.fullmatch(upstream):
        raise InvalidDescriptorError(
            attribute.name,
            f"upstream version in {value!r} must start with a digit and contain only "
            "alphanumerics and '.+~-'",
        )
    if revision is not None and not _REVISION_RE.fullmatch(revision):
        reason = "is empty" if not revision else "may only contain alphanumerics and '.+~'"
        raise InvalidDescriptorError(attribute.name, f"revision in {value!r} {reason}")


def _to_architecture(value: Any) -> Architecture:
    if isinstance(value, Architecture):
        return value
    return Architecture.parse(value)


@define(frozen=True, slots=True)
class Relation:
    kind: RelationKind = field()
    expression: str = field()

    @kind.validator
    def _check_kind(self, attribute: Attribute, value: Any) -> None:
        if not isinstance(value, RelationKind):
            raise InvalidDescriptorError("relations", f"unknown relation kind {value!r}")

    @expression.validator
    def _check_expression(self, attribute: Attribute, value: Any) -> None:
        field_name = self.kind.value.lower()
        check_text(field_name, value, required=True)
        if "," in value:
            raise InvalidDescriptorError(
                field_name, f"{value!r} holds more than one relation; split it on ','"
            )
        if not _RELATION_RE.match(value.strip()):
            raise InvalidDescriptorError(
                field_name, f"{value!r} does not start with a valid package name"
            )

    def __str__(self) -> str:
        return self.expression.strip()


def _to_relations(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    return tuple(value)


@define(frozen=True, slots=True)
class PackageDescriptor:
    name: str = field(validator=_validate_name)
    version: str = field(validator=_validate_version)
    architecture: Architecture = field(converter=_to_architecture)
    maintainer: str = field(validator=_required_line)
    description: str = field(validator=_required_line)
    long_description: str = field(default="", validator=_optional_block)
    relations: tuple[Relation, ...] = field(default=(), converter=_to_relations)
    section: str | None = field(default=None, validator=_optional_line)
    priority: str | None = field(default=None, validator=_optional_line)
    homepage: str | None = field(default=None, validator=_optional_line)

    @relations.validator
    def _check_relations(self, attribute: Attribute, value: tuple[Any, ...]) -> None:
        for relation in value:
            if not isinstance(relation, Relation):
                raise InvalidDescriptorError(
                    "relations", f"expected Relation values, got {relation!r}"
                )

    def relations_of(self, kind: RelationKind) -> list[Relation]:
        return [r for r in self.relations if r.kind is kind]

    @property
    def deb_filename(self) -> str:
        """Conventional archive file name, without the version epoch."""
        epoch, _, rest = self.version.partition(":")
        if not _EPOCH_RE.fullmatch(epoch):
            rest = self.version
        return f"{self.name}_{rest}_{self.architecture}.deb"


def normalize_entry_path(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    while value.startswith("./"):
        value = value[2:]
    return value


def check_entry_path(path: Any) -> None:
    """Rejects archive paths that are unsafe to install or to list in md5sums."""
    if not isinstance(path, str):
        raise InvalidEntryError(repr(path), "path must be a string")
    if not path:
        raise InvalidEntryError(path, "path is empty")
    if path.startswith("/"):
        raise InvalidEntryError(path, "absolute paths are not allowed")
    if any(char in path for char in ("\x00", "\n", "\r")):
        raise InvalidEntryError(path, "path contains a NUL or line break")
    if path.endswith("/"):
        raise InvalidEntryError(path, "path must name a file, not a directory")
    segments = path.split("/")
    if ".." in segments:
        raise InvalidEntryError(path, "parent-directory segments are not allowed")
    if "" in segments or "." in segments:
        raise InvalidEntryError(path, "path contains empty or '.' segments")
    try:
        path.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidEntryError(path, f"path is not valid UTF-8: {e}") from e


def _to_content(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError("content", str(e)) from e
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


@define(frozen=True, slots=True)
class FileEntry:
    path: str = field(converter=normalize_entry_path)
    content: bytes = field(default=b"", converter=_to_content)
    mode: int = field(default=DEFAULT_FILE_MODE)
    uid: int = field(default=0)
    gid: int = field(default=0)
    owner: str = field(default=ROOT_USER)
    group: str = field(default=ROOT_USER)

    @path.validator
    def _check_path(self, attribute: Attribute, value: Any) -> None:
        check_entry_path(value)

    @content.validator
    def _check_content(self, attribute: Attribute, value: Any) -> None:
        if not isinstance(value, bytes):
            raise InvalidEntryError(
                self.path, f"content must be bytes or str, got {type(value).__name__}"
            )

    @mode.validator
    def _check_mode(self, attribute: Attribute, value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0o7777:
            raise InvalidEntryError(self.path, f"invalid permission bits {value!r}")

    @uid.validator
    @gid.validator
    def _check_id(self, attribute: Attribute, value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidEntryError(self.path, f"invalid {attribute.name} {value!r}")

    @owner.validator
    @group.validator
    def _check_account(self, attribute: Attribute, value: Any) -> None:
        if not isinstance(value, str) or not value or not value.isascii() or len(value) > 31:
            raise InvalidEntryError(self.path, f"invalid {attribute.name} {value!r}")
        if any(not char.isprintable() or char.isspace() for char in value):
            raise InvalidEntryError(self.path, f"invalid {attribute.name} {value!r}")

    @property
    def size(self) -> int:
        return len(self.content)
