"""Decode plans: the byte layout of one message definition, built once."""

import struct
from dataclasses import dataclass
from io import BufferedIOBase, RawIOBase
from typing import Any

from .definition import FieldDefinition, MessageDefinition
from .errors import CorruptionError, CorruptSizeError

ByteSource = bytes | bytearray | memoryview | BufferedIOBase | RawIOBase


@dataclass(frozen=True, slots=True)
class PlanSlot:
    """How one field slot is laid out in the data message."""

    field: FieldDefinition
    format: str
    count: int  # number of values the slot contributes to the unpacked tuple
    is_string: bool = False
    is_array: bool = False


def _plan_slot(field: FieldDefinition) -> PlanSlot:
    type_def = field.type_def

    if type_def.is_string:
        # Strings always consume exactly the declared byte count.
        return PlanSlot(field, f"{field.byte_count}s", 1, is_string=True)

    if field.byte_count < type_def.size:
        raise CorruptSizeError(
            f"Field {field.field_number} declares {field.byte_count} bytes, "
            f"but {type_def.tag} needs {type_def.size}"
        )

    if field.is_array():
        count = field.element_count
        return PlanSlot(field, f"{count}{type_def.format_char}", count, is_array=True)

    return PlanSlot(field, type_def.format_char, 1)


class DecodePlan:
    """Reads the raw slot values of a message occurrence in wire order.

    The plan compiles the whole occurrence into a single struct format,
    e.g. a little endian message with a uint32, a 3 element uint8 array
    and a 16 byte string becomes ``<I3B16s``.
    """

    def __init__(self, definition: MessageDefinition) -> None:
        self.definition = definition
        self.slots = [_plan_slot(f) for f in definition.fields]
        fmt = definition.byte_order + "".join(slot.format for slot in self.slots)
        self._struct = struct.Struct(fmt)

    @property
    def format(self) -> str:
        return self._struct.format

    @property
    def size(self) -> int:
        """Number of bytes of one occurrence."""
        return self._struct.size

    def unpack(self, data: bytes | bytearray | memoryview, offset: int = 0) -> tuple[list[Any], int]:
        """Unpack raw slot values from bytes.

        Args:
            data: The bytes to unpack from.
            offset: Starting offset in data.

        Returns:
            Tuple of (raw values in wire order, bytes_consumed).
        """
        available = len(data) - offset
        if available < self.size:
            raise CorruptionError(
                f"Message {self.definition.message_number} needs {self.size} bytes, "
                f"got {available}"
            )

        flat = self._struct.unpack_from(data, offset)
        values: list[Any] = []
        pos = 0
        for slot in self.slots:
            if slot.is_string:
                values.append(flat[pos].decode("utf-8", errors="replace"))
            elif slot.is_array:
                values.append(list(flat[pos : pos + slot.count]))
            else:
                values.append(flat[pos])
            pos += slot.count
        return values, self.size

    def read(self, source: ByteSource) -> list[Any]:
        """Read the raw slot values of one occurrence from bytes or a binary stream."""
        if isinstance(source, (bytes, bytearray, memoryview)):
            values, _ = self.unpack(source)
            return values

        data = source.read(self.size) or b""
        values, _ = self.unpack(data)
        return values
