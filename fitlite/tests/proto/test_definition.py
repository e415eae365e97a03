"""Tests for field and message definitions."""

import logging

import pytest

from fitlite.proto.catalog import BASE_TYPES, CATALOG
from fitlite.proto.definition import FieldDefinition, MessageDefinition
from fitlite.proto.errors import CorruptionError, CorruptSizeError, TypeIndexError, UnknownTypeError
from fitlite.proto.types import AltField, Alternative, Plain, SchemaField


def fdef(number, byte_count, tag):
    return FieldDefinition(number, byte_count, CATALOG.index_of(tag))


def describe_field_from_wire_bytes():
    def parses_fields(expect):
        field = FieldDefinition.from_wire_bytes(b"\x03\x02\x84")
        expect(field.field_number) == 3
        expect(field.byte_count) == 2
        expect(field.base_type_index) == 4
        expect(field.endian_capable) == True
        expect(field.type_tag) == "uint16"

    def ignores_reserved_bits(expect):
        field = FieldDefinition.from_wire_bytes(b"\x01\x01\x62")
        expect(field.base_type_index) == 2
        expect(field.endian_capable) == False

    def reads_at_offset(expect):
        field = FieldDefinition.from_wire_bytes(b"\xaa\xbb\xfd\x04\x86", offset=2)
        expect(field.field_number) == 253
        expect(field.type_tag) == "uint32"

    def rejects_short_input(expect):
        with pytest.raises(CorruptionError):
            FieldDefinition.from_wire_bytes(b"\x01\x02")


def describe_is_array():
    def scalar_when_count_equals_width(expect):
        expect(fdef(1, 2, "uint16").is_array()) == False
        expect(fdef(1, 2, "uint16").element_count) == 1

    def array_when_count_exceeds_width(expect):
        field = fdef(1, 8, "uint16")
        expect(field.is_array()) == True
        expect(field.element_count) == 4

    def never_array_for_strings(expect):
        expect(fdef(1, 16, "string").is_array()) == False

    def fails_for_partial_elements(expect):
        with pytest.raises(CorruptSizeError) as exinfo:
            fdef(1, 5, "uint32").is_array()

        expect(str(exinfo.value)).includes("must be multiple of base type bytes (4)")

    def fails_for_unknown_base_type(expect):
        with pytest.raises(TypeIndexError):
            FieldDefinition(1, 1, 20).is_array()


def describe_resolve_identity():
    def uses_schema_name(expect, caplog):
        field = fdef(3, 4, "uint32z")
        schema_field = SchemaField("serial_number", "uint32z")
        with caplog.at_level(logging.WARNING):
            field.resolve_identity(Plain(schema_field), 0)

        expect(field.name) == "serial_number"
        expect(field.expected_type) == "uint32z"
        expect(field.schema_field) == schema_field
        expect(caplog.records) == []

    def warns_on_type_mismatch(expect, caplog):
        field = fdef(3, 4, "uint32")
        with caplog.at_level(logging.WARNING):
            field.resolve_identity(Plain(SchemaField("serial_number", "uint32z")), 0)

        expect(field.name) == "serial_number"
        expect(caplog.text).includes("0:serial_number must be of type uint32z, not uint32")
        # Decoding keeps the wire declared type
        expect(field.type_tag) == "uint32"

    def drops_converter_between_strings_and_numbers(expect, caplog):
        field = fdef(2, 4, "string")
        schema_field = SchemaField("altitude", "uint16", converter=lambda v: v / 5)
        with caplog.at_level(logging.WARNING):
            field.resolve_identity(Plain(schema_field), 20)

        expect(field.name) == "altitude"
        expect(field.expected_type) == "uint16"
        expect(field.schema_field) == None
        expect(caplog.text).includes("20:altitude must be of type uint16, not string")

    def keeps_converter_between_numbers(expect):
        field = fdef(2, 4, "uint32")
        schema_field = SchemaField("altitude", "uint16", converter=lambda v: v / 5)
        field.resolve_identity(Plain(schema_field), 20)
        expect(field.schema_field) == schema_field
        expect(field.to_machine(10)) == 2

    def synthesizes_unknown_fields(expect, caplog):
        field = fdef(42, 1, "uint8")
        with caplog.at_level(logging.WARNING):
            field.resolve_identity(None, 20)

        expect(field.name) == "field42"
        expect(field.expected_type) == None
        expect(caplog.text).includes("Unknown field number 42 in global message 20")

    def defers_alternative_fields(expect):
        field = fdef(2, 2, "uint16")
        field.resolve_identity(Alternative(AltField("manufacturer")), 0)
        expect(field.name) == "choice_2"
        expect(field.schema_field) == None


def describe_to_machine():
    def maps_every_scalar_sentinel_to_none(expect):
        for index, entry in enumerate(BASE_TYPES):
            if entry.is_string:
                continue
            field = FieldDefinition(1, entry.size, index)
            expect(field.to_machine(entry.sentinel)) == None

    def maps_nan_floats_to_none(expect):
        expect(fdef(1, 4, "float32").to_machine(float("nan"))) == None

    def keeps_defined_values(expect):
        expect(fdef(1, 1, "uint8").to_machine(12)) == 12
        expect(fdef(1, 1, "uint8z").to_machine(255)) == 255

    def converts_arrays_element_wise(expect):
        field = fdef(1, 3, "uint8")
        expect(field.to_machine([1, 255, 3])) == [1, None, 3]

    def delegates_to_schema_converter(expect):
        field = fdef(1, 2, "uint16")
        field.resolve_identity(Plain(SchemaField("speed", "uint16", converter=lambda v: v / 1000)), 20)
        expect(field.to_machine(1500)) == 1.5

    def uses_given_schema_field(expect):
        field = fdef(1, 2, "uint16")
        other = SchemaField("doubled", "uint16", converter=lambda v: v * 2)
        expect(field.to_machine(21, other)) == 42
        expect(field.to_machine(21, None)) == 21

    def treats_empty_string_as_undefined(expect):
        expect(fdef(1, 0, "string").to_machine("")) == None
        expect(fdef(1, 4, "string").to_machine("abc")) == "abc"


def describe_to_text():
    def brackets_raw_values_without_schema(expect):
        expect(fdef(1, 1, "uint8").to_text(7)) == "[7]"

    def renders_undefined(expect):
        expect(fdef(1, 1, "uint8").to_text(0xFF)) == "undefined"

    def renders_arrays(expect):
        expect(fdef(1, 3, "uint8").to_text([1, 2, 3])) == "[ [1] [2] [3] ]"

    def uses_schema_formatter(expect):
        field = fdef(1, 2, "uint16")
        schema_field = SchemaField(
            "distance", "uint16", converter=lambda v: v / 100, formatter=lambda v: f"{v} m"
        )
        field.resolve_identity(Plain(schema_field), 20)
        expect(field.to_text(250)) == "2.5 m"


def describe_set_type():
    def sets_type_and_width(expect):
        field = FieldDefinition(0, 0, 0)
        field.set_type("uint32")
        expect(field.type_tag) == "uint32"
        expect(field.byte_count) == 4
        expect(field.is_array()) == False

    def rejects_unknown_type(expect):
        field = FieldDefinition(0, 1, 0)
        with pytest.raises(UnknownTypeError):
            field.set_type("int128")
        expect(field.base_type_index) == 0


def describe_message_from_wire_bytes():
    def parses_little_endian_definition(expect):
        raw = bytes.fromhex("00 00 1400 03 fd0486 000485 020284".replace(" ", ""))
        definition = MessageDefinition.from_wire_bytes(raw)
        expect(definition.message_number) == 20
        expect(definition.endian) == "little"
        expect(definition.byte_order) == "<"
        expect([f.field_number for f in definition.fields]) == [253, 0, 2]
        expect([f.type_tag for f in definition.fields]) == ["uint32", "sint32", "uint16"]
        expect(definition.wire_size) == len(raw)

    def parses_big_endian_message_number(expect):
        raw = bytes.fromhex("0001001401000100")
        definition = MessageDefinition.from_wire_bytes(raw)
        expect(definition.message_number) == 20
        expect(definition.endian) == "big"
        expect(len(definition.fields)) == 1

    def rejects_unknown_architecture(expect):
        with pytest.raises(CorruptionError) as exinfo:
            MessageDefinition.from_wire_bytes(bytes.fromhex("0002140000"))

        expect(str(exinfo.value)).includes("Unknown architecture 2")

    def rejects_missing_field_definitions(expect):
        with pytest.raises(CorruptionError):
            MessageDefinition.from_wire_bytes(bytes.fromhex("0000140002000100"))
