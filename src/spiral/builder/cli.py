"""The `spiral` command-line interface."""

import importlib.metadata
import os
from pathlib import Path
import tempfile
import tomllib
from typing import Any

import click

from .crypto import package_digests
from .exceptions import BuildError
from .models import FileEntry, PackageDescriptor, Relation, RelationKind
from .packaging.orchestrator import PackageBuilder
from .translate import Lib

try:
    __version__ = importlib.metadata.version("spiral-builder")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

DEFAULT_MAINTAINER = "Spiral Admin <admin@spiral.v2bv.net>"
DEFAULT_DESCRIPTION = "Spiral package"
DEFAULT_MANIFEST = "spiral.toml"

timestamp_option = click.option(
    "--timestamp",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    envvar="SOURCE_DATE_EPOCH",
    help="Modification time recorded for every archive member.",
)


def _split_dependencies(values: tuple[str, ...]) -> list[str]:
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def _write_package(package: bytes, output_path: Path) -> None:
    """Writes the archive next to its destination, then renames it into place."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(package)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _report(package: bytes, output_path: Path) -> None:
    click.secho(f"✅ Package built successfully: {output_path}", fg="green")
    for key, value in package_digests(package).items():
        click.echo(f"  {key}: {value}")


def _parse_mode(value: Any, path: str) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 8)
    except ValueError:
        raise click.UsageError(
            f"Invalid mode {value!r} for file '{path}'; use an integer or an octal string."
        ) from None


def _load_files(files_conf: Any, manifest_dir: Path) -> list[FileEntry]:
    if not isinstance(files_conf, list) or not all(isinstance(f, dict) for f in files_conf):
        raise click.UsageError(
            "'files' must be an array of tables; declare each one as [[files]]."
        )
    entries = []
    for file_conf in files_conf:
        path = file_conf.get("path")
        if not path:
            raise click.UsageError("Every [[files]] entry needs a 'path'.")
        if "content" in file_conf and "source" in file_conf:
            raise click.UsageError(
                f"File '{path}' sets both 'content' and 'source'; choose one."
            )
        if "source" in file_conf:
            source_path = manifest_dir / file_conf["source"]
            if not source_path.is_file():
                raise click.UsageError(f"Source for '{path}' not found at '{source_path}'.")
            content: bytes | str = source_path.read_bytes()
        else:
            content = file_conf.get("content", "")

        options = {
            key: file_conf[key] for key in ("uid", "gid", "owner", "group") if key in file_conf
        }
        if "mode" in file_conf:
            options["mode"] = _parse_mode(file_conf["mode"], path)
        entries.append(FileEntry(path=path, content=content, **options))
    return entries


def _load_relations(relations_conf: Any) -> list[Relation]:
    if not isinstance(relations_conf, dict):
        raise click.UsageError("[relations] must be a table of relation lists.")
    relations = []
    for kind_name, expressions in relations_conf.items():
        kind = RelationKind.parse(kind_name)
        if isinstance(expressions, str):
            expressions = [expressions]
        if not isinstance(expressions, list) or not all(
            isinstance(e, str) for e in expressions
        ):
            raise click.UsageError(
                f"Relation '{kind_name}' must be a string or an array of strings."
            )
        relations.extend(Relation(kind, expression) for expression in expressions)
    return relations


def load_manifest(
    manifest_path: Path,
) -> tuple[PackageDescriptor, list[FileEntry], Path]:
    """Reads a package manifest and returns the descriptor, entries and output path."""
    try:
        with manifest_path.open("rb") as f:
            manifest = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise click.UsageError(f"Could not parse '{manifest_path}': {e}") from e

    package_conf = manifest.get("package", {})
    if not isinstance(package_conf, dict):
        raise click.UsageError(f"'package' in {manifest_path.name} must be a table.")
    if not package_conf:
        raise click.UsageError(f"A [package] section was not found in {manifest_path.name}.")

    missing = [key for key in ("name", "version") if not package_conf.get(key)]
    if missing:
        raise click.UsageError(
            f"Missing required configuration in [package]: {', '.join(missing)}."
        )

    manifest_dir = manifest_path.parent
    descriptor = PackageDescriptor(
        name=package_conf["name"],
        version=str(package_conf["version"]),
        architecture=package_conf.get("architecture", "all"),
        maintainer=package_conf.get("maintainer", DEFAULT_MAINTAINER),
        description=package_conf.get("description", DEFAULT_DESCRIPTION),
        long_description=package_conf.get("long_description", ""),
        relations=_load_relations(manifest.get("relations", {})),
        section=package_conf.get("section"),
        priority=package_conf.get("priority"),
        homepage=package_conf.get("homepage"),
    )
    entries = _load_files(manifest.get("files", []), manifest_dir)
    output_path = manifest_dir / package_conf.get("output_path", descriptor.deb_filename)
    return descriptor, entries, output_path


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="spiral",
    message="%(prog)s version %(version)s",
)
def cli() -> None:
    """Placeholder Debian package generator."""
    pass


@cli.command("generate")
@click.option("-n", "--name", "package_name", required=True, help="Name of the package.")
@click.option(
    "-p", "--package-version", required=True, help="Version of the package."
)
@click.option(
    "-d",
    "--depend",
    "dependencies",
    multiple=True,
    help="Dependency of the package; repeat or separate with commas.",
)
@click.option("-a", "--architecture", default="all", show_default=True)
@click.option("-m", "--maintainer", default=DEFAULT_MAINTAINER, show_default=True)
@click.option("--description", default=DEFAULT_DESCRIPTION, show_default=True)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Output path of the generated package.",
)
@timestamp_option
def generate_command(
    package_name: str,
    package_version: str,
    dependencies: tuple[str, ...],
    architecture: str,
    maintainer: str,
    description: str,
    output: str | None,
    timestamp: int,
) -> None:
    """Generates an empty package that only carries metadata."""
    try:
        descriptor = PackageDescriptor(
            name=package_name,
            version=package_version,
            architecture=architecture,
            maintainer=maintainer,
            description=description,
            relations=[
                Relation(RelationKind.DEPENDS, dep)
                for dep in _split_dependencies(dependencies)
            ],
        )
        output_path = Path(output) if output else Path.cwd() / descriptor.deb_filename
        package = PackageBuilder(descriptor, timestamp=timestamp).build()
        _write_package(package, output_path)
    except (BuildError, OSError) as e:
        click.secho(f"❌ Generation failed:\n{e}", fg="red", err=True)
        raise click.Abort() from e
    _report(package, output_path)


@cli.command("package")
@click.option(
    "--manifest",
    "manifest_path",
    default=DEFAULT_MANIFEST,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to the package manifest.",
)
@click.option(
    "--out",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Override the output path from the manifest.",
)
@timestamp_option
def package_command(manifest_path: str, out: str | None, timestamp: int) -> None:
    """Builds a package described by a TOML manifest."""
    click.echo("📦 Building package from manifest...")
    try:
        descriptor, entries, manifest_output = load_manifest(Path(manifest_path))
        output_path = Path(out) if out else manifest_output
        package = PackageBuilder(descriptor, entries, timestamp=timestamp).build()
        _write_package(package, output_path)
    except (BuildError, click.UsageError, OSError) as e:
        click.secho(f"❌ Packaging Failed:\n{e}", fg="red", err=True)
        raise click.Abort() from e
    _report(package, output_path)


@cli.command("translate")
@click.argument("library_name")
@click.argument("sover", required=False, default="")
def translate_command(library_name: str, sover: str) -> None:
    """Prints the runtime and -dev package names for a shared library."""
    try:
        lib = Lib(library_name, sover)
    except BuildError as e:
        click.secho(f"❌ Translation failed:\n{e}", fg="red", err=True)
        raise click.Abort() from e
    click.echo(lib.translated_lib_name)
    click.echo(lib.translated_dev_name)


main = cli
