"""Build a runtime SchemaRegistry from a parsed schema definition."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from fitlite.proto.types import AltField, Alternative, FieldSpec, Plain, Schema, SchemaField, SchemaRegistry

from .parser import parse
from .types import SchemaEnum, SchemaFieldDef, SchemaFile, SchemaMessage

# FIT timestamps count seconds since 1989-12-31T00:00:00Z.
FIT_EPOCH = datetime(1989, 12, 31, tzinfo=UTC)


@dataclass(frozen=True)
class EnumLookup:
    """Maps enum values to their names. Unknown values pass through."""

    values: dict[int, str]

    def __call__(self, value: Any) -> Any:
        return self.values.get(value, value)


@dataclass(frozen=True)
class Scaled:
    """Converts a raw integer to a physical value: raw / scale - offset."""

    scale: float = 1
    offset: float = 0

    def __call__(self, value: Any) -> Any:
        if self.scale != 1:
            value = value / self.scale
        if self.offset != 0:
            value = value - self.offset
        return value


class Timestamp:
    """Converts seconds since the FIT epoch to an aware datetime."""

    def __call__(self, value: Any) -> datetime:
        return FIT_EPOCH + timedelta(seconds=value)


@dataclass(frozen=True)
class Chain:
    """Applies converters one after the other."""

    steps: tuple[Any, ...]

    def __call__(self, value: Any) -> Any:
        for step in self.steps:
            value = step(value)
        return value


@dataclass(frozen=True)
class WithUnit:
    """Renders a value followed by its unit."""

    unit: str

    def __call__(self, value: Any) -> str:
        return f"{value} {self.unit}"


def _annotation_args(field: SchemaFieldDef) -> dict[str, list[Any]]:
    return {annotation.name: annotation.arguments for annotation in field.annotations}


def build_field(field: SchemaFieldDef, enums: dict[str, SchemaEnum]) -> SchemaField:
    """Create the runtime SchemaField of a parsed field."""
    annotations = _annotation_args(field)
    steps: list[Any] = []

    if field.type in enums:
        enum = enums[field.type]
        protocol_type = enum.type
        steps.append(EnumLookup({v.value: v.name for v in enum.values}))
    else:
        protocol_type = field.type

    if "scale" in annotations or "offset" in annotations:
        scale = annotations.get("scale", [1])[0]
        offset = annotations.get("offset", [0])[0]
        steps.append(Scaled(scale, offset))

    if "datetime" in annotations:
        steps.append(Timestamp())

    converter: Any = None
    if len(steps) == 1:
        converter = steps[0]
    elif steps:
        converter = Chain(tuple(steps))

    formatter = WithUnit(annotations["unit"][0]) if "unit" in annotations else None

    return SchemaField(
        name=field.name,
        protocol_type=protocol_type,
        converter=converter,
        formatter=formatter,
    )


def build_schema(message: SchemaMessage, enums: dict[str, SchemaEnum]) -> Schema:
    """Create the runtime Schema of a parsed message."""
    fields: dict[int, FieldSpec] = {}
    for member in message.members:
        if member.field is not None:
            fields[member.number] = Plain(build_field(member.field, enums))
            continue

        variants = {}
        default = None
        for variant in member.variants:
            schema_field = build_field(variant.field, enums)
            if variant.key is None:
                default = schema_field
            else:
                variants[variant.key] = schema_field

        assert member.selector is not None
        fields[member.number] = Alternative(AltField(member.selector, variants, default))

    return Schema(name=message.name, number=message.number, fields=fields)


def build_registry(schema: SchemaFile) -> SchemaRegistry:
    """Create a SchemaRegistry from a parsed schema file."""
    enums = {enum.name: enum for enum in schema.enums}
    return SchemaRegistry(build_schema(message, enums) for message in schema.messages)


def load_registry(path: str | Path) -> SchemaRegistry:
    """Parse a schema file and build its registry."""
    with open(path, encoding="utf-8") as f:
        text = f.read()

    return build_registry(parse(text))
