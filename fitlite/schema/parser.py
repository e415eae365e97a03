"""Schema definition parser using Lark."""

import os
from typing import Any

from lark import Lark, Token
from lark.visitors import Transformer

from fitlite.proto.catalog import CATALOG

from .types import (
    SchemaAnnotation,
    SchemaEnum,
    SchemaEnumValue,
    SchemaFieldDef,
    SchemaFile,
    SchemaMember,
    SchemaMessage,
    SchemaVariant,
)

_g_parser: Lark | None = None

# Annotations understood by the registry builder, with their argument count
ANNOTATIONS: dict[str, int] = {
    "scale": 1,
    "offset": 1,
    "unit": 1,
    "datetime": 0,
}

INTEGER_TYPES = frozenset(
    tag for tag in CATALOG.tags() if tag not in ("string", "float32", "float64")
)


class ValidationError(RuntimeError):
    """Raised when schema validation fails."""


class _DefaultKey:
    pass


_DEFAULT = _DefaultKey()


def _number(token: Token) -> int | float:
    text = str(token)
    try:
        return int(text)
    except ValueError:
        return float(text)


class TreeTransformer(Transformer):
    """Transform parse tree into schema types."""

    def start(self, args: list[Any]) -> SchemaFile:
        return SchemaFile(
            enums=[a for a in args if isinstance(a, SchemaEnum)],
            messages=[a for a in args if isinstance(a, SchemaMessage)],
        )

    def name(self, args: list[Any]) -> str:
        return str(args[0])

    def enum(self, args: list[Any]) -> SchemaEnum:
        return SchemaEnum(name=args[0], type=args[1], values=list(args[2:]))

    def enum_value(self, args: list[Any]) -> SchemaEnumValue:
        return SchemaEnumValue(name=args[0], value=int(args[1]))

    def message(self, args: list[Any]) -> SchemaMessage:
        return SchemaMessage(name=args[0], number=int(args[1]), members=list(args[2:]))

    def plain_member(self, args: list[Any]) -> SchemaMember:
        return SchemaMember(number=int(args[0]), field=args[1], selector=None, variants=[])

    def alt_member(self, args: list[Any]) -> SchemaMember:
        return SchemaMember(
            number=int(args[0]), field=None, selector=args[1], variants=list(args[2:])
        )

    def field(self, args: list[Any]) -> SchemaFieldDef:
        return SchemaFieldDef(name=args[0], type=args[1], annotations=list(args[2:]))

    def variant(self, args: list[Any]) -> SchemaVariant:
        key = None if args[0] is _DEFAULT else args[0]
        return SchemaVariant(key=key, field=args[1])

    def number_key(self, args: list[Any]) -> int:
        return int(args[0])

    def string_key(self, args: list[Any]) -> str:
        return str(args[0])[1:-1]

    def default_key(self, args: list[Any]) -> _DefaultKey:
        return _DEFAULT

    def annotation(self, args: list[Any]) -> SchemaAnnotation:
        return SchemaAnnotation(name=args[0], arguments=[a for a in args[1:] if a is not None])

    def number_arg(self, args: list[Any]) -> int | float:
        return _number(args[0])

    def string_arg(self, args: list[Any]) -> str:
        return str(args[0])[1:-1]


def _validate_field(field: SchemaFieldDef, enums: dict[str, SchemaEnum], where: str) -> None:
    if field.type not in CATALOG and field.type not in enums:
        raise ValidationError(f"{where}: unknown type {field.type}")

    for annotation in field.annotations:
        if annotation.name not in ANNOTATIONS:
            raise ValidationError(f"{where}: unknown annotation @{annotation.name}")
        expected = ANNOTATIONS[annotation.name]
        if len(annotation.arguments) != expected:
            raise ValidationError(
                f"{where}: @{annotation.name} takes {expected} argument(s), "
                f"got {len(annotation.arguments)}"
            )
        if annotation.name in ("scale", "offset"):
            if not isinstance(annotation.arguments[0], (int, float)):
                raise ValidationError(f"{where}: @{annotation.name} needs a number")
            if annotation.name == "scale" and annotation.arguments[0] == 0:
                raise ValidationError(f"{where}: @scale must not be 0")


def validate(schema: SchemaFile) -> None:
    """Validate a parsed schema definition."""
    enums: dict[str, SchemaEnum] = {}
    for enum in schema.enums:
        if enum.name in enums or enum.name in CATALOG:
            raise ValidationError(f"Enum {enum.name} declared twice or shadows a base type")
        if enum.type not in INTEGER_TYPES:
            raise ValidationError(f"Enum {enum.name} must have an integer base type, not {enum.type}")
        enums[enum.name] = enum

    numbers: set[int] = set()
    names: set[str] = set()
    for message in schema.messages:
        if message.number in numbers:
            raise ValidationError(f"Message number {message.number} declared twice")
        if message.name in names:
            raise ValidationError(f"Message {message.name} declared twice")
        numbers.add(message.number)
        names.add(message.name)

        plain_types = {m.field.name: m.field.type for m in message.members if m.field is not None}
        field_numbers: set[int] = set()
        for member in message.members:
            where = f"{message.name}:{member.number}"
            if member.number in field_numbers:
                raise ValidationError(f"{where}: field number declared twice")
            field_numbers.add(member.number)

            if member.field is not None:
                _validate_field(member.field, enums, where)
                continue

            if member.selector not in plain_types:
                raise ValidationError(
                    f"{where}: selector {member.selector} is not a plain field of {message.name}"
                )
            defaults = [v for v in member.variants if v.key is None]
            if len(defaults) > 1:
                raise ValidationError(f"{where}: more than one default variant")

            # Enum selectors are matched by value name after conversion
            selector_enum = enums.get(plain_types[member.selector])
            for variant in member.variants:
                if selector_enum is not None and isinstance(variant.key, int):
                    raise ValidationError(
                        f"{where}: variant key {variant.key} can never match enum selector "
                        f"{member.selector}, use a value name of {selector_enum.name}"
                    )
                _validate_field(variant.field, enums, where)


def parse(text: str) -> SchemaFile:
    """Parse a schema definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schemadef.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar)

    tree = _g_parser.parse(text)
    schema = TreeTransformer().transform(tree)

    validate(schema)

    return schema
