"""Tests for the base type catalog."""

import pytest

from fitlite.proto.catalog import BASE_TYPES, CATALOG
from fitlite.proto.errors import ConfigurationError, TypeIndexError, UnknownTypeError


def describe_catalog():
    def has_fourteen_entries(expect):
        expect(len(CATALOG)) == 14

    def keeps_wire_order(expect):
        expect(CATALOG.lookup_by_index(0).tag) == "enum"
        expect(CATALOG.lookup_by_index(4).tag) == "uint16"
        expect(CATALOG.lookup_by_index(7).tag) == "string"
        expect(CATALOG.lookup_by_index(13).tag) == "byte"

    def looks_up_by_tag(expect):
        entry = CATALOG.lookup("sint16")
        expect(entry.storage) == "int16"
        expect(entry.sentinel) == 0x7FFF
        expect(entry.size) == 2
        expect(entry.format_char) == "h"

    def returns_index_of_tag(expect):
        for index, entry in enumerate(BASE_TYPES):
            expect(CATALOG.index_of(entry.tag)) == index

    def zero_types_use_zero_sentinel(expect):
        for tag in ("uint8z", "uint16z", "uint32z"):
            expect(CATALOG.lookup(tag).sentinel) == 0

    def strings_have_no_width(expect):
        entry = CATALOG.lookup("string")
        expect(entry.size) == 0
        expect(entry.is_string) == True
        expect(entry.format_char) == ""

    def float64_matches_struct_width(expect):
        entry = CATALOG.lookup("float64")
        expect(entry.size) == 8
        expect(entry.format_char) == "d"
        expect(entry.is_float) == True

    def rejects_unknown_tag(expect):
        with pytest.raises(UnknownTypeError) as exinfo:
            CATALOG.lookup("uint64")

        expect(str(exinfo.value)).includes("uint64")

    def rejects_index_out_of_range(expect):
        with pytest.raises(TypeIndexError):
            CATALOG.lookup_by_index(14)
        with pytest.raises(TypeIndexError):
            CATALOG.lookup_by_index(31)

    def reports_lookup_failures_as_configuration_errors(expect):
        expect(issubclass(UnknownTypeError, ConfigurationError)) == True
        expect(issubclass(TypeIndexError, ConfigurationError)) == True
