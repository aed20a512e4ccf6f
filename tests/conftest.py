"""Pytest fixtures for the entire spiral-builder test suite."""

from collections.abc import Callable
import io
import tarfile

import pytest

from spiral.builder.models import FileEntry, PackageDescriptor

ArMembers = list[tuple[str, bytes]]
TarMembers = list[tuple[tarfile.TarInfo, bytes]]


def read_ar(data: bytes) -> ArMembers:
    """Minimal reader for the outer ar container, used to check round-trips."""
    assert data[:8] == b"!<arch>\n"
    members = []
    offset = 8
    while offset < len(data):
        header = data[offset : offset + 60]
        assert header[58:60] == b"`\n"
        name = header[:16].decode("ascii").rstrip()
        size = int(header[48:58].decode("ascii"))
        payload = data[offset + 60 : offset + 60 + size]
        members.append((name, payload))
        offset += 60 + size + size % 2
    return members


def read_tar(data: bytes) -> TarMembers:
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        members = []
        for info in tar.getmembers():
            content = tar.extractfile(info).read() if info.isfile() else b""
            members.append((info, content))
        return members


@pytest.fixture
def unpack_deb() -> Callable[[bytes], dict[str, TarMembers | bytes]]:
    """Splits a built package into its version marker and both inner trees."""

    def _unpack(package: bytes) -> dict[str, TarMembers | bytes]:
        members = dict(read_ar(package))
        return {
            "debian-binary": members["debian-binary"],
            "control": read_tar(members["control.tar.gz"]),
            "data": read_tar(members["data.tar.gz"]),
        }

    return _unpack


@pytest.fixture
def ar_members() -> Callable[[bytes], ArMembers]:
    return read_ar


@pytest.fixture
def tar_members() -> Callable[[bytes], TarMembers]:
    return read_tar


@pytest.fixture
def empty_descriptor() -> PackageDescriptor:
    return PackageDescriptor(
        name="spiral-empty",
        version="1.0",
        architecture="all",
        maintainer="Test <t@example.com>",
        description="Empty test package",
    )


@pytest.fixture
def sample_entries() -> list[FileEntry]:
    return [
        FileEntry(path="usr/bin/spiral-tool", content=b"#!/bin/sh\nexit 0\n", mode=0o755),
        FileEntry(path="etc/spiral/empty.conf"),
        FileEntry(path="usr/share/spiral/README", content="placeholder\n"),
    ]
