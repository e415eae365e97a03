"""Type definitions for parsed schema files."""

from dataclasses import dataclass
from typing import Any

from dataclasses_json import DataClassJsonMixin


@dataclass
class SchemaAnnotation(DataClassJsonMixin):
    """Represents an annotation on a field, e.g. @scale(100)."""

    name: str
    arguments: list[Any]


@dataclass
class SchemaEnumValue(DataClassJsonMixin):
    """Represents a single enum value."""

    name: str
    value: int


@dataclass
class SchemaEnum(DataClassJsonMixin):
    """Represents an enum type definition."""

    name: str
    type: str
    values: list[SchemaEnumValue]


@dataclass
class SchemaFieldDef(DataClassJsonMixin):
    """Represents a named, typed field."""

    name: str
    type: str
    annotations: list[SchemaAnnotation]


@dataclass
class SchemaVariant(DataClassJsonMixin):
    """Represents one variant of an alternative field.

    key=None marks the default variant.
    """

    key: int | str | None
    field: SchemaFieldDef


@dataclass
class SchemaMember(DataClassJsonMixin):
    """Represents a numbered field of a message.

    Plain members have a field. Alternative members have a selector and
    variants instead.
    """

    number: int
    field: SchemaFieldDef | None
    selector: str | None
    variants: list[SchemaVariant]

    @property
    def is_alt(self) -> bool:
        return self.selector is not None


@dataclass
class SchemaMessage(DataClassJsonMixin):
    """Represents a message definition."""

    name: str
    number: int
    members: list[SchemaMember]


@dataclass
class SchemaFile(DataClassJsonMixin):
    """Represents a complete schema file."""

    enums: list[SchemaEnum]
    messages: list[SchemaMessage]
