"""Command-line interface for inspecting schemas and decoding FIT messages."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.table import Table

from fitlite.proto import DecodeError, DumpFilter, MessageDecoder, MessageDefinition
from fitlite.report import render_dump
from fitlite.schema import build_registry, parse

if TYPE_CHECKING:
    from fitlite.proto import DecodedRecord, DiagnosticEntry
    from fitlite.schema import SchemaFile


@click.group()
def cli() -> None:
    """FIT message record decoder."""


def _read_schema(input_file: str) -> SchemaFile:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()
    return parse(text)


def _parse_hex(value: str, what: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError:
        print(f"Invalid {what} hex: {value}")
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def schema(input_file: str, output_json: bool) -> None:
    """Display the messages of a schema file."""
    schema_file = _read_schema(input_file)

    if output_json:
        print(schema_file.to_json(indent=2))
        return

    console = Console()
    console.print("[bold cyan]Messages[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Number", style="green", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Fields", style="yellow", justify="right")
    table.add_column("Alternatives", style="dim")

    for message in schema_file.messages:
        alts = ", ".join(
            f"{member.number} ({member.selector})" for member in message.members if member.is_alt
        )
        table.add_row(str(message.number), message.name, str(len(message.members)), alts)

    console.print(table)

    if schema_file.enums:
        console.print()
        console.print("[bold cyan]Enums[/bold cyan]")
        enum_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        enum_table.add_column("Name", style="white")
        enum_table.add_column("Type", style="dim")
        enum_table.add_column("Values", style="yellow", justify="right")
        for enum in schema_file.enums:
            enum_table.add_row(enum.name, enum.type, str(len(enum.values)))
        console.print(enum_table)


@cli.command()
@click.option("--schema", "-s", "schema_file", required=True, help="Schema file")
@click.option(
    "--definition", "-d", required=True, help="Definition message content as hex"
)
@click.option("--payload", "-p", required=True, help="Data message content as hex")
@click.option("--field", "-f", "fields", multiple=True, help="Only dump these fields")
@click.option("--undefined", is_flag=True, default=False, help="Dump undefined values too")
@click.option("--dump", "output_dump", is_flag=True, help="Output the diagnostic dump")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Hide schema warnings")
def decode(
    schema_file: str,
    definition: str,
    payload: str,
    fields: tuple[str, ...],
    undefined: bool,
    output_dump: bool,
    output_json: bool,
    quiet: bool,
) -> None:
    """Decode one data message."""
    if quiet:
        logging.getLogger("fitlite").setLevel(logging.ERROR)

    registry = build_registry(_read_schema(schema_file))
    definition_bytes = _parse_hex(definition, "definition")
    payload_bytes = _parse_hex(payload, "payload")

    dump_filter = DumpFilter(frozenset(fields) if fields else None, undefined)
    entries: list[DiagnosticEntry] = []
    try:
        message_definition = MessageDefinition.from_wire_bytes(definition_bytes)
        decoder = MessageDecoder(message_definition, registry)
        record = decoder.decode(payload_bytes, dump_filter=dump_filter, fields_dump=entries)
    except DecodeError as e:
        print(f"Decode failed: {e}")
        sys.exit(1)

    if output_dump:
        print(render_dump(entries, title=f"{record.message_name} ({record.type_number})"), end="")
    elif output_json:
        _output_json(record)
    else:
        _output_plain(record)


def _json_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if value is None or isinstance(value, (int, float, str, bool)):
        return value
    return str(value)


def _output_json(record: DecodedRecord) -> None:
    """Output a decoded record as JSON."""
    data = {
        "message": record.message_name,
        "number": record.type_number,
        "fields": {name: _json_value(value) for name, value in record.fields.items()},
    }
    print(json.dumps(data, indent=2))


def _output_plain(record: DecodedRecord) -> None:
    """Output a decoded record using rich text formatting."""
    console = Console()
    console.print(f"[bold cyan]{record.message_name}[/bold cyan] ({record.type_number})")

    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Field", style="white")
    table.add_column("Value", style="yellow")

    for name, value in sorted(record.fields.items()):
        table.add_row(name, "undefined" if value is None else str(value))

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
