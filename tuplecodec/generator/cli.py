"""Command-line interface for tuplecodec code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from tuplecodec.generator import generate_codecs, parse, parse_schema, python
from tuplecodec.generator.parser import ValidationError
from tuplecodec.generator.types import RawDescription

if TYPE_CHECKING:
    from tuplecodec.generator.types import StructSchema
    from tuplecodec.runtime.serialization import CompositeCodec

logger = logging.getLogger(__name__)


def _load_schemas(input_file: str) -> list[StructSchema]:
    """Read and validate a description file (.json or schema text)."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    if input_file.endswith(".json"):
        try:
            raws = [RawDescription.from_dict(d) for d in json.loads(text)]
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationError(f"Invalid description file {input_file}: {e}") from e
    else:
        raws = parse(text)

    logger.debug("Loaded %d descriptions from %s", len(raws), input_file)
    return [parse_schema(raw) for raw in raws]


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show generator debug logs")
def cli(verbose: bool) -> None:
    """Tuplecodec value-type codec generator."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input description file")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--runtime-import",
    "runtime_import",
    default="tuplecodec.runtime",
    show_default=True,
    help="Import path of the runtime package used by the generated code",
)
def gen(input_file: str, output_file: str, runtime_import: str) -> None:
    """Generate Python codecs from a description file."""
    try:
        schemas = _load_schemas(input_file)
        generated_file = python.render(schemas, runtime_import=runtime_import)
    except (OSError, ValidationError) as e:
        _fail(f"Error: {e}")
        return

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


@cli.command()
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option("--name", default="tuplecodec_runtime", help="Runtime folder name")
def runtime(output_path: str, name: str) -> None:
    """Generate runtime support code."""
    runtime_dir = Path(output_path) / name
    runtime_dir.mkdir(parents=True, exist_ok=True)
    for filename, content in python.runtime().items():
        (runtime_dir / filename).write_text(content)
    print(f"Generated Python runtime in {runtime_dir}")


def _lock_data(codecs: dict[str, CompositeCodec]) -> dict:
    return {
        "schemas": {
            name: {"identity": codec.identity, "width": str(codec.width)}
            for name, codec in codecs.items()
        }
    }


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input description file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display identity strings and widths."""
    try:
        schemas = _load_schemas(input_file)
        codecs = generate_codecs(schemas)
    except (OSError, ValidationError) as e:
        _fail(f"Error: {e}")
        return

    if output_json:
        print(json.dumps(_lock_data(codecs), indent=2))
        return

    console = Console()
    console.print("[bold cyan]Value types[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("Identity", style="yellow")
    table.add_column("Width", style="dim")
    table.add_column("Shape", style="green")

    for schema in schemas:
        codec = codecs[schema.name]
        table.add_row(schema.name, escape(codec.identity), str(codec.width), schema.shape.value)

    console.print(table)


def _load_lock(lock_file: str) -> dict[str, str]:
    """Read the name -> identity mapping of a lock file written by info --json."""
    with open(lock_file, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise ValidationError(f"Invalid lock file {lock_file}: {e}") from e

    schemas = data.get("schemas") if isinstance(data, dict) else None
    if not isinstance(schemas, dict):
        raise ValidationError(f"Invalid lock file {lock_file}: missing \"schemas\" table")

    locked: dict[str, str] = {}
    for name, entry in schemas.items():
        identity = entry.get("identity") if isinstance(entry, dict) else None
        if not isinstance(identity, str):
            raise ValidationError(f"Invalid lock file {lock_file}: {name} has no identity")
        locked[name] = identity
    return locked


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input description file")
@click.option("--lock", "-l", "lock_file", required=True, help="Identity lock file from info --json")
def check(input_file: str, lock_file: str) -> None:
    """Compare identity strings with a lock file to detect schema drift."""
    try:
        codecs = generate_codecs(_load_schemas(input_file))
    except (OSError, ValidationError) as e:
        _fail(f"Error: {e}")
        return

    try:
        locked = _load_lock(lock_file)
    except (OSError, ValidationError) as e:
        _fail(f"Error: {e}")
        return

    console = Console()
    drifted = False
    for name, identity in locked.items():
        if name not in codecs:
            console.print(f"[red]removed[/red]  {name}: {escape(identity)}")
            drifted = True
        elif codecs[name].identity != identity:
            console.print(
                f"[red]changed[/red]  {name}: {escape(identity)} -> "
                f"{escape(codecs[name].identity)}"
            )
            drifted = True

    for name, codec in codecs.items():
        if name not in locked:
            console.print(f"[green]new[/green]      {name}: {escape(codec.identity)}")

    if drifted:
        sys.exit(1)
    console.print("No schema drift")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
