"""Decoded message records and diagnostic dump entries."""

from dataclasses import dataclass, field
from typing import Any

from dataclasses_json import DataClassJsonMixin


@dataclass
class DecodedRecord:
    """The named, converted content of one message occurrence."""

    message_name: str
    type_number: int | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def set(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]


@dataclass(frozen=True)
class DiagnosticEntry(DataClassJsonMixin):
    """One dumped field: where it came from and how it renders."""

    message_number: int
    field_number: int
    name: str
    type: str
    value: str


@dataclass(frozen=True)
class DumpFilter:
    """Selects the fields that end up in a diagnostic dump.

    field_names=None dumps every field. Undefined values are skipped
    unless include_undefined is set.
    """

    field_names: frozenset[str] | None = None
    include_undefined: bool = False

    def accepts(self, name: str) -> bool:
        return self.field_names is None or name in self.field_names
