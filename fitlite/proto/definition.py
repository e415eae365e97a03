"""Field and message definitions read from the definition section of a FIT stream.

A FieldDefinition describes one field slot of a message occurrence. It
should match the corresponding entry of the schema registry, but when the
registry has no entry the data can still be read since the definition
carries the exact size and base type of every slot.
"""

import logging
import math
import struct
from dataclasses import dataclass, field
from typing import Any, Literal, Self

from .catalog import CATALOG, TypeDef
from .errors import CorruptionError, CorruptSizeError
from .types import Alternative, FieldSpec, Plain, SchemaField

logger = logging.getLogger(__name__)

FIELD_DEFINITION_SIZE = 3
MESSAGE_HEADER_SIZE = 5

# Sentinel for "use the field's own schema entry"
_OWN: Any = object()


@dataclass(slots=True)
class FieldDefinition:
    """Definition of one field slot of a message occurrence."""

    field_number: int
    byte_count: int
    base_type_index: int
    endian_capable: bool = False
    _name: str | None = field(default=None, init=False, repr=False, compare=False)
    _expected_type: str | None = field(default=None, init=False, repr=False, compare=False)
    _schema_field: SchemaField | None = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def from_wire_bytes(cls, raw: bytes | memoryview, offset: int = 0) -> Self:
        """Parse the 3 byte wire form of a field definition."""
        if len(raw) - offset < FIELD_DEFINITION_SIZE:
            raise CorruptionError(
                f"Field definition needs {FIELD_DEFINITION_SIZE} bytes, "
                f"got {len(raw) - offset}"
            )
        number, byte_count, base_type = struct.unpack_from("=BBB", raw, offset)
        return cls(
            field_number=number,
            byte_count=byte_count,
            base_type_index=base_type & 0x1F,
            endian_capable=bool(base_type & 0x80),
        )

    def resolve_identity(self, spec: FieldSpec | None, message_number: int) -> None:
        """Record the name and expected type of this field from its schema entry."""
        if isinstance(spec, Plain):
            self._name = spec.field.name
            self._expected_type = spec.field.protocol_type
            self._schema_field = self.usable_schema_field(spec.field, message_number)
        elif isinstance(spec, Alternative):
            # The real identity is selected per occurrence by the decoder.
            self._name = f"choice_{self.field_number}"
            self._expected_type = None
            self._schema_field = None
        else:
            self._name = f"field{self.field_number}"
            self._expected_type = None
            self._schema_field = None
            logger.warning(
                "Unknown field number %d in global message %d", self.field_number, message_number
            )

    def is_compatible(self, schema_field: SchemaField) -> bool:
        """Whether raw values of this field can go through the schema field's converter."""
        if schema_field.protocol_type not in CATALOG:
            return False
        return CATALOG.lookup(schema_field.protocol_type).is_string == self.type_def.is_string

    def usable_schema_field(self, schema_field: SchemaField, message_number: int) -> SchemaField | None:
        """Check the type of a schema field and return it if its converter applies.

        A mismatch between numeric types only warns. When a string meets a
        numeric schema type the raw value is passed through unconverted.
        """
        if self.check_type(schema_field, message_number) or self.is_compatible(schema_field):
            return schema_field
        return None

    def check_type(self, schema_field: SchemaField, message_number: int) -> bool:
        """Warn when the wire type differs from the type the schema expects."""
        tag = self.type_def.tag
        if schema_field.protocol_type != tag:
            logger.warning(
                "%d:%s must be of type %s, not %s",
                message_number,
                schema_field.name,
                schema_field.protocol_type,
                tag,
            )
            return False
        return True

    @property
    def name(self) -> str:
        if self._name is None:
            return f"field{self.field_number}"
        return self._name

    @property
    def expected_type(self) -> str | None:
        return self._expected_type

    @property
    def schema_field(self) -> SchemaField | None:
        return self._schema_field

    @property
    def type_def(self) -> TypeDef:
        return CATALOG.lookup_by_index(self.base_type_index)

    @property
    def type_tag(self) -> str:
        return self.type_def.tag

    @property
    def base_type_bytes(self) -> int:
        return self.type_def.size

    @property
    def sentinel_value(self) -> Any:
        return self.type_def.sentinel

    def is_array(self) -> bool:
        """Whether the slot holds more than one element of its base type."""
        width = self.base_type_bytes
        # Strings have no element width; their byte count is their length.
        if width == 0 or self.byte_count <= width:
            return False
        if self.byte_count % width != 0:
            raise CorruptSizeError(
                f"Total bytes ({self.byte_count}) of field {self.field_number} must be "
                f"multiple of base type bytes ({width})."
            )
        return True

    @property
    def element_count(self) -> int:
        if self.is_array():
            return self.byte_count // self.base_type_bytes
        return 1

    def is_undefined(self, value: Any) -> bool:
        """Whether a raw value is the sentinel of this field's base type."""
        if isinstance(value, list):
            return all(self.is_undefined(v) for v in value)
        if isinstance(value, float) and math.isnan(value):
            return True
        return value == self.sentinel_value

    def to_machine(self, value: Any, schema_field: SchemaField | None = _OWN) -> Any:
        """Convert a raw value into its domain value."""
        if schema_field is _OWN:
            schema_field = self._schema_field

        if isinstance(value, list):
            return [self.to_machine(v, schema_field) for v in value]
        if self.is_undefined(value):
            return None
        if schema_field is None:
            return value
        return schema_field.to_machine(value)

    def to_text(self, value: Any, schema_field: SchemaField | None = _OWN) -> str:
        """Render a raw value for diagnostic output."""
        if schema_field is _OWN:
            schema_field = self._schema_field

        if isinstance(value, list):
            return "[ " + "".join(self.to_text(v, schema_field) + " " for v in value) + "]"
        if self.is_undefined(value):
            return "undefined"
        if schema_field is None:
            return f"[{value}]"
        return schema_field.to_text(value)

    def set_type(self, tag: str) -> None:
        """Force the base type of this field, e.g. before reading a synthesized field."""
        type_def = CATALOG.lookup(tag)
        self.base_type_index = CATALOG.index_of(tag)
        self.byte_count = type_def.size


@dataclass(slots=True)
class MessageDefinition:
    """Layout of the data messages that follow one FIT definition message."""

    message_number: int
    endian: Literal["little", "big"] = "little"
    fields: list[FieldDefinition] = field(default_factory=list)

    @classmethod
    def from_wire_bytes(cls, raw: bytes | memoryview, offset: int = 0) -> Self:
        """Parse the content of a definition message (without its record header)."""
        if len(raw) - offset < MESSAGE_HEADER_SIZE:
            raise CorruptionError(
                f"Definition message needs at least {MESSAGE_HEADER_SIZE} bytes, "
                f"got {len(raw) - offset}"
            )
        architecture = raw[offset + 1]
        if architecture == 0:
            endian: Literal["little", "big"] = "little"
        elif architecture == 1:
            endian = "big"
        else:
            raise CorruptionError(f"Unknown architecture {architecture}")

        prefix = "<" if endian == "little" else ">"
        (number,) = struct.unpack_from(f"{prefix}H", raw, offset + 2)
        count = raw[offset + 4]

        expected = MESSAGE_HEADER_SIZE + count * FIELD_DEFINITION_SIZE
        if len(raw) - offset < expected:
            raise CorruptionError(
                f"Definition of message {number} declares {count} fields, "
                f"needs {expected} bytes, got {len(raw) - offset}"
            )

        fields = [
            FieldDefinition.from_wire_bytes(
                raw, offset + MESSAGE_HEADER_SIZE + i * FIELD_DEFINITION_SIZE
            )
            for i in range(count)
        ]
        return cls(message_number=number, endian=endian, fields=fields)

    @property
    def wire_size(self) -> int:
        """Size in bytes of the definition message content."""
        return MESSAGE_HEADER_SIZE + len(self.fields) * FIELD_DEFINITION_SIZE

    @property
    def byte_order(self) -> str:
        """The struct byte order prefix."""
        return "<" if self.endian == "little" else ">"
