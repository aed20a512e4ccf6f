"""Tests for rendering the control file."""

import pytest

from spiral.builder.models import PackageDescriptor, Relation, RelationKind
from spiral.builder.packaging.control import (
    CONTROL_FIELDS,
    control_fields,
    render_control,
)


def _descriptor(**overrides) -> PackageDescriptor:
    fields = {
        "name": "test",
        "version": "0.0.1-0",
        "architecture": "all",
        "maintainer": "Spiral Admin <admin@spiral.v2bv.net>",
        "description": "Test control file",
    }
    fields.update(overrides)
    return PackageDescriptor(**fields)


def test_control_without_dependencies(empty_descriptor: PackageDescriptor) -> None:
    assert render_control(empty_descriptor) == (
        "Package: spiral-empty\n"
        "Version: 1.0\n"
        "Architecture: all\n"
        "Maintainer: Test <t@example.com>\n"
        "Description: Empty test package\n"
    )


def test_control_with_dependencies() -> None:
    descriptor = _descriptor(
        relations=[
            Relation(RelationKind.DEPENDS, "test1"),
            Relation(RelationKind.DEPENDS, "test2"),
        ]
    )
    assert render_control(descriptor) == (
        "Package: test\n"
        "Version: 0.0.1-0\n"
        "Architecture: all\n"
        "Maintainer: Spiral Admin <admin@spiral.v2bv.net>\n"
        "Depends: test1, test2\n"
        "Description: Test control file\n"
    )


def test_relation_fields_follow_canonical_order() -> None:
    descriptor = _descriptor(
        relations=[
            Relation(RelationKind.REPLACES, "old-test"),
            Relation(RelationKind.CONFLICTS, "old-test"),
            Relation(RelationKind.DEPENDS, "libc6 (>= 2.17)"),
            Relation(RelationKind.PRE_DEPENDS, "dpkg (>= 1.19)"),
            Relation(RelationKind.RECOMMENDS, "test-data"),
        ]
    )
    names = [name for name, _ in control_fields(descriptor)]
    assert names == [
        "Package",
        "Version",
        "Architecture",
        "Maintainer",
        "Pre-Depends",
        "Depends",
        "Recommends",
        "Conflicts",
        "Replaces",
        "Description",
    ]


@pytest.mark.parametrize("kind", list(RelationKind))
def test_relation_field_appears_once_only_when_set(kind: RelationKind) -> None:
    empty = render_control(_descriptor())
    assert f"{kind.value}:" not in empty

    rendered = render_control(
        _descriptor(relations=[Relation(kind, "foo"), Relation(kind, "bar")])
    )
    lines = rendered.splitlines()
    assert lines.count(f"{kind.value}: foo, bar") == 1
    assert not any(line == f"{kind.value}:" for line in lines)


def test_control_field_table_order() -> None:
    names = [name for name, _ in CONTROL_FIELDS]
    assert names[:4] == ["Package", "Version", "Architecture", "Maintainer"]
    assert names[-1] == "Description"
    assert names[4:13] == [kind.value for kind in RelationKind]


def test_multiline_description() -> None:
    descriptor = _descriptor(
        long_description="First paragraph.\n\nSecond paragraph.\n  indented\n\n"
    )
    assert render_control(descriptor).endswith(
        "Description: Test control file\n"
        " First paragraph.\n"
        " .\n"
        " Second paragraph.\n"
        "   indented\n"
    )


def test_optional_fields_precede_description() -> None:
    descriptor = _descriptor(
        section="misc", priority="optional", homepage="https://example.com"
    )
    assert render_control(descriptor).endswith(
        "Section: misc\n"
        "Priority: optional\n"
        "Homepage: https://example.com\n"
        "Description: Test control file\n"
    )


def test_control_ends_with_single_newline(empty_descriptor: PackageDescriptor) -> None:
    rendered = render_control(empty_descriptor)
    assert rendered.endswith("\n")
    assert not rendered.endswith("\n\n")
