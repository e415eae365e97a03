"""Decoding of FIT message occurrences into named records."""

import logging
from collections.abc import MutableSequence
from dataclasses import replace
from typing import Any

from .definition import FieldDefinition, MessageDefinition
from .entity import EntityContext
from .errors import CorruptionError, UnresolvedAltFieldError
from .plan import ByteSource, DecodePlan
from .record import DecodedRecord, DiagnosticEntry, DumpFilter
from .types import Alternative, Schema, SchemaField, SchemaRegistry

logger = logging.getLogger(__name__)

# The message that identifies a FIT file and the field carrying its type.
IDENTITY_MESSAGE = "file_id"
IDENTITY_FIELD = "type"


class MessageDecoder:
    """Decodes the data messages that follow one definition message.

    The decoder is built once per definition and reused for every
    occurrence. Each call to decode() reads the raw slot values, resolves
    the final name of every field and converts the values.

    Example:
        definition = MessageDefinition.from_wire_bytes(definition_bytes)
        decoder = MessageDecoder(definition, registry)
        record = decoder.decode(payload)
        print(record.message_name, record.fields)
    """

    def __init__(self, definition: MessageDefinition, registry: SchemaRegistry | None = None) -> None:
        self.definition = definition
        self.number = definition.message_number
        self.schema: Schema | None = registry.lookup(self.number) if registry else None

        if self.schema:
            self.name = self.schema.name
        else:
            self.name = f"message{self.number}"
            logger.warning("Unknown global message number %d", self.number)

        self.plan = DecodePlan(definition)

        # Identities are resolved on copies, the definition may be shared
        # by decoders built with other registries.
        self.fields = [replace(field) for field in definition.fields]
        for field in self.fields:
            spec = self.schema.field(field.field_number) if self.schema else None
            field.resolve_identity(spec, self.number)

        # Selected alternative per (field index, variant), type checked once.
        self._variants: dict[tuple[int, int], SchemaField | None] = {}

        # Alternative fields go last so that their selector fields are
        # already converted when they get resolved.
        indexed = list(enumerate(self.fields))
        self._order = [
            index
            for index, field in sorted(
                indexed, key=lambda item: (self._is_alt(item[1]), item[1].field_number)
            )
        ]

    def _is_alt(self, field: FieldDefinition) -> bool:
        # Without a schema nothing tells us a field is an alternative.
        return self.schema is not None and self.schema.is_alt(field.field_number)

    def resolution_order(self) -> list[FieldDefinition]:
        """The fields in the order their identities get resolved."""
        return [self.fields[index] for index in self._order]

    def decode(
        self,
        source: ByteSource,
        entity: EntityContext | None = None,
        dump_filter: DumpFilter | None = None,
        fields_dump: MutableSequence[DiagnosticEntry] | None = None,
    ) -> DecodedRecord:
        """Decode one occurrence.

        Args:
            source: The bytes of the occurrence or a stream positioned at them.
            entity: Receives the file type and a copy of the record.
            dump_filter: Selects fields for the diagnostic dump.
            fields_dump: Receives DiagnosticEntry objects when dump_filter is set.

        Returns:
            The decoded record.
        """
        raw_values = self.plan.read(source)
        record = DecodedRecord(self.name, self.number)
        dumping = dump_filter is not None and fields_dump is not None
        entries: list[DiagnosticEntry] = []

        for index in self._order:
            field = self.fields[index]
            raw = raw_values[index]

            field_name, schema_field = self._resolve(index, field, record)
            if isinstance(raw, str):
                value = _convert_string(field, raw, schema_field)
                raw = _truncate(raw)
            else:
                value = field.to_machine(raw, schema_field)
            record.set(field_name, value)

            if dumping and dump_filter.accepts(field_name):
                if dump_filter.include_undefined or not field.is_undefined(raw):
                    entries.append(
                        DiagnosticEntry(
                            message_number=self.number,
                            field_number=field.field_number,
                            name=field_name,
                            type=field.type_tag,
                            value=field.to_text(raw, schema_field),
                        )
                    )

        if self.name == IDENTITY_MESSAGE:
            file_type = record.get(IDENTITY_FIELD)
            if file_type is None:
                raise CorruptionError(
                    f"Corrupted FIT file: {IDENTITY_MESSAGE} record has no "
                    f"{IDENTITY_FIELD} definition"
                )
            if entity is not None:
                entity.set_type(file_type)

        if entity is not None:
            handle = entity.new_output_record(self.name)
            if handle is not None:
                for name, value in record.fields.items():
                    handle.set(name, value)

        if dumping:
            for entry in entries:
                fields_dump.append(entry)

        return record

    def _resolve(
        self, index: int, field: FieldDefinition, record: DecodedRecord
    ) -> tuple[str, SchemaField | None]:
        """Return the final name and schema field of a field for this occurrence."""
        if self.schema is None:
            return field.name, field.schema_field

        spec = self.schema.field(field.field_number)
        if not isinstance(spec, Alternative):
            return field.name, field.schema_field

        alt = spec.alt
        selector_value = record.get(alt.selector)
        selected = alt.variant_for(selector_value)
        if selected is None:
            raise UnresolvedAltFieldError(
                f"The value {selector_value} of field {alt.selector} does not match any "
                f"selection of alternative field {field.field_number} in message {self.name}"
            )
        key = (index, id(selected))
        if key not in self._variants:
            self._variants[key] = field.usable_schema_field(selected, self.number)
        return selected.name, self._variants[key]


def _convert_string(field: FieldDefinition, raw: str, schema_field: SchemaField | None) -> Any:
    # Strings are null byte terminated. There may be more bytes in the slot,
    # but nothing from the first null byte on reaches the converter. Only an
    # empty slot is undefined; a slot full of nulls is the empty string.
    if field.is_undefined(raw):
        return None
    text = _truncate(raw)
    if not text:
        return text
    return field.to_machine(text, schema_field)


def _truncate(value: str) -> str:
    null_byte = value.find("\0")
    if null_byte < 0:
        return value
    return value[:null_byte]


def decode_message(
    definition: MessageDefinition,
    source: ByteSource,
    registry: SchemaRegistry | None = None,
    **kwargs: Any,
) -> DecodedRecord:
    """Decode a single occurrence without keeping the decoder around."""
    return MessageDecoder(definition, registry).decode(source, **kwargs)
