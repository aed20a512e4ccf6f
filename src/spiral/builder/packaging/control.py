"""Renders a PackageDescriptor into the text of a binary package's control file."""

from collections.abc import Callable
from pathlib import Path

import jinja2

from ..models import PackageDescriptor, RelationKind

_TEMPLATE_DIR = Path(__file__).parent / "templates"
CONTROL_TEMPLATE = "control.j2"

FieldRenderer = Callable[[PackageDescriptor], str | None]


_TEMPLATE_ENV = jinja2.Environment(
    loader=jinja2.FileSystemLoader(_TEMPLATE_DIR),
    trim_blocks=True,
    lstrip_blocks=True,
    autoescape=False,
)


def _relation_renderer(kind: RelationKind) -> FieldRenderer:
    def render(descriptor: PackageDescriptor) -> str | None:
        relations = descriptor.relations_of(kind)
        if not relations:
            return None
        return ", ".join(str(r) for r in relations)

    return render


def render_description(descriptor: PackageDescriptor) -> str:
    """
    Short description on the field line, then the extended body with every
    line indented by one space and blank lines written as ' .'.
    """
    body = descriptor.long_description.split("\n")
    while body and not body[-1].strip():
        body.pop()
    continuation = "".join(
        f"\n {line}" if line.strip() else "\n ." for line in body
    )
    return descriptor.description.strip() + continuation


CONTROL_FIELDS: tuple[tuple[str, FieldRenderer], ...] = (
    ("Package", lambda d: d.name),
    ("Version", lambda d: d.version),
    ("Architecture", lambda d: str(d.architecture)),
    ("Maintainer", lambda d: d.maintainer.strip()),
    *((kind.value, _relation_renderer(kind)) for kind in RelationKind),
    ("Section", lambda d: (d.section or "").strip()),
    ("Priority", lambda d: (d.priority or "").strip()),
    ("Homepage", lambda d: (d.homepage or "").strip()),
    ("Description", render_description),
)


def control_fields(descriptor: PackageDescriptor) -> list[tuple[str, str]]:
    """Rendered (field, value) pairs in control-file order, empty fields dropped."""
    fields = []
    for name, renderer in CONTROL_FIELDS:
        value = renderer(descriptor)
        if value:
            fields.append((name, value))
    return fields


def render_control(descriptor: PackageDescriptor) -> str:
    template = _TEMPLATE_ENV.get_template(CONTROL_TEMPLATE)
    return template.render(fields=control_fields(descriptor))
