# uipom/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Convenience commands to view effective config, validate descriptor files and
print what the compiler generates from them.
"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import click

from uipom.core.compiler import AccessorDefinition, DescriptorCompiler
from uipom.core.descriptor_loader import find_descriptor_files, load_descriptor_files
from uipom.errors import DescriptorError
from uipom.utils.config import get_settings
from uipom.utils.logger import get_logger, set_log_level


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _collect(targets: List[str], descriptors_dir: Optional[str], recursive: bool) -> List[Path]:
    paths: list[Path] = []
    if targets:
        for p in (Path(t).resolve() for t in targets):
            if p.is_dir():
                paths.extend(find_descriptor_files(p, recursive=recursive))
            else:
                paths.append(p)
    else:
        root = Path(descriptors_dir) if descriptors_dir else get_settings().DESCRIPTORS_DIR
        if not root.is_dir():
            click.echo(f"Descriptor directory not found: {root}. Provide file(s) or --dir.")
            sys.exit(2)
        paths.extend(find_descriptor_files(root, recursive=recursive))
    return paths


def _definition_dict(d: AccessorDefinition) -> dict:
    return {
        "name": d.name,
        "qualified_name": d.qualified_name,
        "return_type": d.return_type,
        "is_collection": d.is_collection,
        "locator": str(d.locator) if d.locator else None,
        "children": [_definition_dict(c) for c in d.children],
    }


def _echo_tree(d: AccessorDefinition, depth: int = 0) -> None:
    kind = f"list[{d.return_type}]" if d.is_collection else d.return_type
    where = f"  '{d.locator}'" if d.locator else ""
    click.echo(f"{'  ' * depth}{d.name}: {kind}{where}")
    for c in d.children:
        _echo_tree(c, depth + 1)


_targets = click.argument("targets", nargs=-1, required=False)
_dir_option = click.option(
    "--dir", "descriptors_dir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=None,
    help="Directory of descriptor YAML files (default: DESCRIPTORS_DIR)",
)
_recursive = click.option("--recursive/--no-recursive", default=True, show_default=True)


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="uipom")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    _echo_json(s.model_dump(mode="json"))


@cli.command("validate")
@_targets
@_dir_option
@_recursive
def cmd_validate(targets: List[str], descriptors_dir: Optional[str], recursive: bool):
    """Validate descriptor files together: schema, references and cycles."""
    paths = _collect(targets, descriptors_dir, recursive)
    if not paths:
        click.echo("No descriptor files found.")
        sys.exit(1)

    try:
        model = load_descriptor_files(paths)
        compiled = DescriptorCompiler().compile(model)
    except (DescriptorError, FileNotFoundError) as e:
        click.echo(f"ERR {e}")
        sys.exit(1)

    for fp in paths:
        click.echo(f"OK  {fp}")
    click.echo(f"{len(model.pages)} page(s), {len(model)} component(s), {len(compiled.types)} type(s)")
    sys.exit(0)


@cli.command("compile")
@_targets
@_dir_option
@_recursive
@click.option("--json", "as_json", is_flag=True, default=False, help="Print accessor definitions as JSON")
def cmd_compile(targets: List[str], descriptors_dir: Optional[str], recursive: bool, as_json: bool):
    """
    Print the accessor tree generated from descriptors.

    Examples:
      uipom compile pages/nuget.yaml
      uipom compile --dir pages --json
    """
    log = get_logger(__name__)
    paths = _collect(targets, descriptors_dir, recursive)
    try:
        compiled = DescriptorCompiler().compile(load_descriptor_files(paths))
    except (DescriptorError, FileNotFoundError) as e:
        click.echo(f"ERR {e}")
        sys.exit(1)

    log.debug(f"Compiled {len(paths)} file(s) into {len(compiled.types)} type(s)")
    if as_json:
        _echo_json({
            "types": sorted(compiled.types),
            "definitions": [_definition_dict(d) for d in compiled.definitions],
        })
        return
    for d in compiled.definitions:
        _echo_tree(d)


def main() -> None:
    cli(prog_name="uipom")


if __name__ == "__main__":
    main()
