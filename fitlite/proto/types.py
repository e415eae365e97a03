"""Runtime schema descriptors for FIT message decoding.

These dataclasses describe the known messages and fields at runtime,
used by the decoder to name fields and convert their values.
"""

from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SchemaField:
    """Describes a known field of a message."""

    name: str
    protocol_type: str
    converter: Callable[[Any], Any] | None = None
    formatter: Callable[[Any], str] | None = None

    def to_machine(self, value: Any) -> Any:
        """Convert a defined raw value to its domain value."""
        if self.converter is None:
            return value
        return self.converter(value)

    def to_text(self, value: Any) -> str:
        """Render a defined raw value for humans."""
        value = self.to_machine(value)
        if self.formatter is None:
            return str(value)
        return self.formatter(value)


@dataclass(frozen=True, slots=True)
class AltField:
    """A field whose identity depends on the value of another field."""

    selector: str
    variants: dict[Hashable, SchemaField] = field(default_factory=dict)
    default: SchemaField | None = None

    def variant_for(self, value: Any) -> SchemaField | None:
        """Select the variant for a selector value, falling back to the default."""
        if isinstance(value, Hashable) and value in self.variants:
            return self.variants[value]
        return self.default

    def fields(self) -> list[SchemaField]:
        """All variants, the default included."""
        result = list(self.variants.values())
        if self.default is not None:
            result.append(self.default)
        return result


@dataclass(frozen=True, slots=True)
class Plain:
    """Field spec of a field with a fixed identity."""

    field: SchemaField


@dataclass(frozen=True, slots=True)
class Alternative:
    """Field spec of a field resolved through an AltField."""

    alt: AltField


FieldSpec = Plain | Alternative


@dataclass(frozen=True)
class Schema:
    """Describes a message: its name, number and fields by number."""

    name: str
    number: int
    fields: dict[int, FieldSpec] = field(default_factory=dict)

    def __post_init__(self) -> None:
        variant_names = {
            variant.name
            for spec in self.fields.values()
            if isinstance(spec, Alternative)
            for variant in spec.alt.fields()
        }
        for number, spec in self.fields.items():
            if isinstance(spec, Alternative) and spec.alt.selector in variant_names:
                raise ConfigurationError(
                    f"Alternative field {number} of message {self.name} is selected by "
                    f"{spec.alt.selector}, which is itself an alternative field"
                )

    def field(self, number: int) -> FieldSpec | None:
        return self.fields.get(number)

    def is_alt(self, number: int) -> bool:
        return isinstance(self.fields.get(number), Alternative)


class SchemaRegistry:
    """Read-only lookup of message schemas by number."""

    def __init__(self, schemas: Iterable[Schema] = ()) -> None:
        self._by_number: dict[int, Schema] = {}
        self._by_name: dict[str, Schema] = {}
        for schema in schemas:
            if schema.number in self._by_number:
                raise ConfigurationError(f"Message number {schema.number} defined twice")
            self._by_number[schema.number] = schema
            self._by_name[schema.name] = schema

    def __len__(self) -> int:
        return len(self._by_number)

    def __iter__(self) -> Iterator[Schema]:
        return iter(self._by_number.values())

    def lookup(self, number: int) -> Schema | None:
        return self._by_number.get(number)

    def by_name(self, name: str) -> Schema | None:
        return self._by_name.get(name)
