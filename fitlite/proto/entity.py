"""Receivers of decoded records.

An EntityContext stands for the file a stream of messages belongs to.
The decoder tells it the file type once the identity message has been
decoded and hands it every decoded record.
"""

from typing import Any, Protocol

from .record import DecodedRecord


class OutputRecord(Protocol):
    def set(self, name: str, value: Any) -> None: ...


class EntityContext(Protocol):
    def set_type(self, value: Any) -> None: ...

    def new_output_record(self, name: str) -> OutputRecord | None: ...


class RecordCollector:
    """EntityContext that keeps decoded records in memory.

    Example:
        collector = RecordCollector(message_names={"file_id", "record"})
        decoder.decode(payload, entity=collector)
        for record in collector.records_named("record"):
            handle(record)
    """

    def __init__(self, message_names: set[str] | None = None) -> None:
        self.type: Any = None
        self.records: list[DecodedRecord] = []
        self._message_names = message_names

    def set_type(self, value: Any) -> None:
        self.type = value

    def new_output_record(self, name: str) -> DecodedRecord | None:
        """Create the record that receives the fields of a decoded occurrence.

        Returns None for messages outside of message_names.
        """
        if self._message_names is not None and name not in self._message_names:
            return None
        record = DecodedRecord(name)
        self.records.append(record)
        return record

    def records_named(self, name: str) -> list[DecodedRecord]:
        return [record for record in self.records if record.message_name == name]
