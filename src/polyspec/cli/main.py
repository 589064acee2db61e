"""CLI entry point for polyspec.

Invoked as::

    polyspec [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m polyspec.cli.main

Commands
--------
key         Print the identity key for kind/namespace/name
gvk         Render a group/version/kind identifier
convert     Print a YAML or JSON spec file as JSON, a map, or an Any envelope
apply       Merge a patch file onto a base spec file
version     Show version information
"""
from __future__ import annotations

import base64
import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from polyspec.errors import SpecError

console = Console()
err_console = Console(stderr=True)


def _read_source(path: str) -> str:
    """Read a spec file, exiting on error."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)


def _load_or_exit(path: str) -> dict[str, Any]:
    """Load a YAML or JSON file as a generic spec, exiting on failure."""
    from polyspec.codec import apply_yaml

    spec: dict[str, Any] = {}
    try:
        apply_yaml(spec, _read_source(path))
    except SpecError as exc:
        err_console.print(f"[red]Invalid spec[/red] in {path}: {exc}")
        sys.exit(1)
    return spec


def _print_json(data: Any) -> None:
    console.print(Syntax(json.dumps(data, indent=2, ensure_ascii=False), "json"))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="polyspec")
def cli() -> None:
    """Serialization and identity helpers for polymorphic config specs."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from polyspec import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]polyspec[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# key / gvk commands
# ---------------------------------------------------------------------------


@cli.command(name="key")
@click.argument("kind")
@click.argument("namespace")
@click.argument("name")
def key_command(kind: str, namespace: str, name: str) -> None:
    """Print the identity key of a config object."""
    from polyspec.model import key

    click.echo(key(kind, namespace, name))


@cli.command(name="gvk")
@click.argument("kind")
@click.option("--group", default="", help="API group (empty for core)")
@click.option("--version", "version_", default="v1", show_default=True, help="Schema version")
def gvk_command(kind: str, group: str, version_: str) -> None:
    """Render the group/version/kind identifier of a schema."""
    from polyspec.model import GroupVersionKind

    click.echo(str(GroupVersionKind(group=group, version=version_, kind=kind)))


# ---------------------------------------------------------------------------
# convert command
# ---------------------------------------------------------------------------


@cli.command(name="convert")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--to",
    "target",
    type=click.Choice(["json", "map", "envelope"], case_sensitive=False),
    default="json",
    help="Output form",
)
def convert_command(file: str, target: str) -> None:
    """Convert a YAML or JSON spec file.

    FILE is the path to the spec file.  Its contents are treated as a
    generic spec.
    """
    from polyspec.codec import to_any, to_json, to_map

    spec = _load_or_exit(file)
    target = target.lower()
    try:
        if target == "json":
            click.echo(to_json(spec).decode("utf-8"))
        elif target == "map":
            _print_json(to_map(spec))
        else:
            envelope = to_any(spec)
            table = Table(title=f"Envelope: {file}", show_header=False)
            table.add_row("[bold]type_url[/bold]", envelope.type_url)
            table.add_row("[bold]value[/bold]", base64.b64encode(envelope.value).decode("ascii"))
            console.print(table)
    except SpecError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# apply command
# ---------------------------------------------------------------------------


@cli.command(name="apply")
@click.argument("base", type=click.Path(exists=False))
@click.argument("patch", type=click.Path(exists=False))
@click.option("--strict", is_flag=True, default=False, help="Reject fields BASE does not have")
def apply_command(base: str, patch: str, strict: bool) -> None:
    """Merge PATCH onto BASE and print the result as JSON.

    BASE and PATCH are YAML or JSON files.  With --strict every key in
    PATCH must already exist in BASE.
    """
    from polyspec.codec import apply_yaml, to_json

    spec = _load_or_exit(base)
    patch_text = _read_source(patch)
    try:
        if strict:
            _check_known_keys(spec, patch_text)
        apply_yaml(spec, patch_text)
    except SpecError as exc:
        err_console.print(f"[red]Cannot apply[/red] {patch} onto {base}: {exc}")
        sys.exit(1)
    click.echo(to_json(spec).decode("utf-8"))


def _check_known_keys(spec: dict[str, Any], patch_text: str) -> None:
    """Raise ``UnknownFieldError`` for top-level patch keys missing from ``spec``."""
    from polyspec.codec import yaml_to_json
    from polyspec.errors import UnknownFieldError

    patch = json.loads(yaml_to_json(patch_text))
    if isinstance(patch, dict):
        for name in patch:
            if name not in spec:
                raise UnknownFieldError(name)


if __name__ == "__main__":
    cli()
