"""Tests for building schema registries and decoding with them."""

import logging
from datetime import UTC, datetime

from pytest import approx

from fitlite.proto import (
    Alternative,
    MessageDecoder,
    MessageDefinition,
    Plain,
    RecordCollector,
)
from fitlite.schema import build_registry, load_registry, parse


def describe_build_registry():
    def looks_up_messages_by_number_and_name(expect, registry):
        expect(len(registry)) == 3
        expect(registry.lookup(20).name) == "record"
        expect(registry.by_name("event").number) == 21
        expect(registry.lookup(65000)) == None

    def builds_plain_and_alternative_specs(expect, registry):
        file_id = registry.lookup(0)
        expect(isinstance(file_id.field(1), Plain)) == True
        expect(isinstance(file_id.field(2), Alternative)) == True
        expect(file_id.field(2).alt.selector) == "manufacturer"
        expect(file_id.field(2).alt.default.name) == "product"
        expect(file_id.field(99)) == None

    def uses_enum_base_type(expect, registry):
        manufacturer = registry.lookup(0).field(1).field
        expect(manufacturer.protocol_type) == "uint16"
        expect(manufacturer.to_machine(1)) == "garmin"
        expect(manufacturer.to_machine(42)) == 42

    def scales_and_offsets_values(expect, registry):
        altitude = registry.lookup(20).field(2).field
        expect(altitude.to_machine(2600)) == approx(20.0)
        expect(altitude.to_text(2600)).includes(" m")

    def converts_timestamps(expect, registry):
        timestamp = registry.lookup(20).field(253).field
        expect(timestamp.to_machine(0)) == datetime(1989, 12, 31, tzinfo=UTC)
        expect(timestamp.to_machine(86400)) == datetime(1990, 1, 1, tzinfo=UTC)

    def loads_schema_files(expect, schema_path):
        registry = load_registry(schema_path)
        expect([schema.name for schema in registry]) == ["file_id", "record", "event"]

    def formats_units(expect):
        registry = build_registry(parse("message record = 20 { 3: heart_rate: uint8 @unit(\"bpm\") }"))
        heart_rate = registry.lookup(20).field(3).field
        expect(heart_rate.to_machine(150)) == 150
        expect(heart_rate.to_text(150)) == "150 bpm"


def describe_decoding_with_schema_file():
    def decodes_file_id_with_enum_selector(expect, registry):
        # file_id: type enum, manufacturer uint16, product uint16, serial uint32z
        definition = MessageDefinition.from_wire_bytes(
            bytes.fromhex("000000000400010001028402028403048c")
        )
        collector = RecordCollector()
        record = MessageDecoder(definition, registry).decode(
            bytes.fromhex("04" "0100" "0c0b" "00000000"), entity=collector
        )
        expect(record.message_name) == "file_id"
        expect(record.fields) == {
            "type": "activity",
            "manufacturer": "garmin",
            "garmin_product": 0x0B0C,
            "serial_number": None,
        }
        expect(collector.type) == "activity"

    def falls_back_to_default_product(expect, registry):
        definition = MessageDefinition.from_wire_bytes(
            bytes.fromhex("0000000003000100010284020284")
        )
        record = MessageDecoder(definition, registry).decode(bytes.fromhex("04" "ff00" "0100"))
        expect(record.fields) == {"type": "activity", "manufacturer": "development", "product": 1}

    def keeps_raw_string_for_scaled_field(expect, registry, caplog):
        # altitude declared as a 4 byte string on the wire
        definition = MessageDefinition.from_wire_bytes(bytes.fromhex("0000140001020407"))
        with caplog.at_level(logging.WARNING):
            record = MessageDecoder(definition, registry).decode(b"20\x00\x00")

        expect(record.fields) == {"altitude": "20"}
        expect(caplog.text).includes("20:altitude must be of type uint16, not string")

    def decodes_big_endian_record(expect, registry):
        definition = MessageDefinition.from_wire_bytes(
            bytes.fromhex("0001001403fd04860202840301 02".replace(" ", ""))
        )
        record = MessageDecoder(definition, registry).decode(
            bytes.fromhex("00015180" "0a28" "96")
        )
        expect(record.fields["timestamp"]) == datetime(1990, 1, 1, tzinfo=UTC)
        expect(record.fields["altitude"]) == approx(20.0)
        expect(record.fields["heart_rate"]) == 150
