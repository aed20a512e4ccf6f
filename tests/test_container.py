"""Tests for the outer ar container."""

from collections.abc import Callable

import pytest

from spiral.builder.exceptions import ArchiveWriteError
from spiral.builder.packaging.container import (
    AR_HEADER_SIZE,
    AR_MAGIC,
    ar_member,
    ar_member_header,
    assemble,
)


def test_member_header_layout() -> None:
    header = ar_member_header("debian-binary", 4, mtime=1700000000)
    assert len(header) == AR_HEADER_SIZE
    assert header == (
        b"debian-binary   "
        b"1700000000  "
        b"0     "
        b"0     "
        b"100644  "
        b"4         "
        b"`\n"
    )


def test_odd_sized_member_is_padded() -> None:
    assert ar_member("a", b"abc") == ar_member_header("a", 3) + b"abc\n"
    assert ar_member("a", b"ab") == ar_member_header("a", 2) + b"ab"


@pytest.mark.parametrize("name", ["", "x" * 17, "contrôl.tar.gz"])
def test_member_name_must_fit(name: str) -> None:
    with pytest.raises(ArchiveWriteError):
        ar_member_header(name, 0)


def test_assemble_member_order(ar_members: Callable[[bytes], list]) -> None:
    package = assemble(b"control-bytes", b"data-bytes!")
    assert package.startswith(AR_MAGIC)
    assert ar_members(package) == [
        ("debian-binary", b"2.0\n"),
        ("control.tar.gz", b"control-bytes"),
        ("data.tar.gz", b"data-bytes!"),
    ]


def test_assemble_keeps_missing_members(ar_members: Callable[[bytes], list]) -> None:
    members = ar_members(assemble(None, b""))
    assert [name for name, _ in members] == [
        "debian-binary",
        "control.tar.gz",
        "data.tar.gz",
    ]
    assert members[1][1] == b""
    assert members[2][1] == b""
