"""FIT base type catalog.

Every field slot of a FIT definition message names one of these base
types by index. The catalog maps each type to the storage used on the
wire, the reserved value meaning "no value present" and its width.
"""

from dataclasses import dataclass
from typing import Any

from .errors import TypeIndexError, UnknownTypeError

# Map storage kinds to struct format characters
FORMAT_CHARS: dict[str, str] = {
    "int8": "b",
    "uint8": "B",
    "int16": "h",
    "uint16": "H",
    "int32": "i",
    "uint32": "I",
    "float32": "f",
    "float64": "d",
}


@dataclass(frozen=True, slots=True)
class TypeDef:
    """Describes one FIT base type."""

    tag: str
    storage: str
    sentinel: Any
    size: int

    @property
    def format_char(self) -> str:
        """The struct format character, empty for strings."""
        return FORMAT_CHARS.get(self.storage, "")

    @property
    def is_string(self) -> bool:
        return self.storage == "string"

    @property
    def is_float(self) -> bool:
        return self.storage in ("float32", "float64")


# Order matters: the position is the base type index used on the wire.
BASE_TYPES: tuple[TypeDef, ...] = (
    TypeDef("enum", "uint8", 0xFF, 1),
    TypeDef("sint8", "int8", 0x7F, 1),
    TypeDef("uint8", "uint8", 0xFF, 1),
    TypeDef("sint16", "int16", 0x7FFF, 2),
    TypeDef("uint16", "uint16", 0xFFFF, 2),
    TypeDef("sint32", "int32", 0x7FFFFFFF, 4),
    TypeDef("uint32", "uint32", 0xFFFFFFFF, 4),
    TypeDef("string", "string", "", 0),
    TypeDef("float32", "float32", 0xFFFFFFFF, 4),
    # 8 bytes, the width struct "d" reads; some FIT tables list 4.
    TypeDef("float64", "float64", 0xFFFFFFFF, 8),
    TypeDef("uint8z", "uint8", 0, 1),
    TypeDef("uint16z", "uint16", 0, 2),
    TypeDef("uint32z", "uint32", 0, 4),
    TypeDef("byte", "uint8", 0xFF, 1),
)


class TypeCatalog:
    """Read-only lookup of base types by tag or wire index."""

    def __init__(self, entries: tuple[TypeDef, ...] = BASE_TYPES) -> None:
        self._entries = entries
        self._by_tag = {entry.tag: entry for entry in entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tag: object) -> bool:
        return tag in self._by_tag

    def lookup(self, tag: str) -> TypeDef:
        """Return the entry for a type tag."""
        try:
            return self._by_tag[tag]
        except KeyError:
            raise UnknownTypeError(f"Unknown FIT type {tag}") from None

    def lookup_by_index(self, index: int) -> TypeDef:
        """Return the entry for a wire base type index."""
        if index < 0 or index >= len(self._entries):
            raise TypeIndexError(f"Unknown FIT base type {index}")
        return self._entries[index]

    def index_of(self, tag: str) -> int:
        """Return the wire index of a type tag."""
        return self._entries.index(self.lookup(tag))

    def tags(self) -> list[str]:
        return [entry.tag for entry in self._entries]


CATALOG = TypeCatalog()
