"""Command-line interface for typemirror code generation."""

from __future__ import annotations

import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from typemirror.generator import parse, typescript
from typemirror.generator.config import ConfigError, load_config
from typemirror.generator.parser import Schema, SchemaError
from typemirror.generator.visitor import TranslationError


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log translation steps")
def cli(verbose: bool) -> None:
    """typemirror schema to TypeScript generator."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--config", "-c", "config_file", required=True, help="Namespace prefix config (JSON)")
@click.option(
    "--root",
    "-r",
    "roots",
    required=True,
    multiple=True,
    help="Root type as namespace.Name (repeatable)",
)
@click.option("--output", "-o", "output_file", default=None, help="Output file (default: stdout)")
def gen(input_file: str, config_file: str, roots: tuple[str, ...], output_file: str | None) -> None:
    """Generate TypeScript declarations for the root types."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        schema = parse(text)
        config = load_config(config_file)
        translation = typescript.translate(schema, list(roots), config)
    except (SchemaError, ConfigError, TranslationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    generated_file = translation.render(header=config.header)
    if output_file is None:
        print(generated_file, end="")
    else:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(generated_file)

    try:
        translation.visitor.check_consulted()
    except TranslationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display the struct types declared in a schema."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        schema = parse(text)
    except SchemaError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if output_json:
        _output_json(schema)
    else:
        _output_plain(schema)


def _embedded_name(fields: list) -> str:
    embedded = [f for f in fields if f.embedded]
    return embedded[0].type.name if embedded else ""


def _output_json(schema: Schema) -> None:
    """Output schema info as JSON."""
    data: dict = {"namespaces": {}, "structs": {}}

    for alias, ns in schema.namespaces.items():
        data["namespaces"][alias] = {
            "identifier": ns.identifier,
            "structs": list(ns.structs),
            "aliases": list(ns.aliases),
        }

    for alias, ns in schema.namespaces.items():
        for name, t in ns.structs.items():
            data["structs"][f"{alias}.{name}"] = {
                "fields": [f.name for f in t.fields if not f.embedded],
                "embedded": _embedded_name(t.fields) or None,
            }

    print(json.dumps(data, indent=2))


def _output_plain(schema: Schema) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Namespaces[/bold cyan]")
    ns_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    ns_table.add_column("Alias", style="white")
    ns_table.add_column("Identifier", style="dim")
    ns_table.add_column("Types", style="yellow", justify="right")

    for alias, ns in schema.namespaces.items():
        ns_table.add_row(alias, ns.identifier, str(len(ns.structs) + len(ns.aliases)))

    console.print(ns_table)
    console.print()

    console.print("[bold cyan]Structs[/bold cyan]")
    struct_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    struct_table.add_column("Name", style="white")
    struct_table.add_column("Fields", style="yellow", justify="right")
    struct_table.add_column("Embeds", style="green")

    for alias, ns in schema.namespaces.items():
        for name, t in ns.structs.items():
            own_fields = [f for f in t.fields if not f.embedded]
            struct_table.add_row(f"{alias}.{name}", str(len(own_fields)), _embedded_name(t.fields))

    console.print(struct_table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
