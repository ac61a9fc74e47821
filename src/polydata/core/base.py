"""Constructor ABC shared by every data class flavour.

A constructor is a reusable factory: calling it validates input and
returns a fresh :class:`~polydata.core.record.Record`. Subclasses provide
``_create`` (build from a raw input map) and ``copy_record`` (build the
next generation of an existing record).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from polydata.core.record import Record, bind_snapshot, collect_input
from polydata.schema import Schema


class Constructor(ABC):
    """Callable factory of validated records.

    Attributes:
        name: Human-readable name, also used for the record type.
        schema: Introspectable composed schema.
        record_type: Class of the records this constructor returns.
    """

    kind: str = "data"

    name: str
    schema: Schema
    record_type: type[Record]

    def __call__(self, data: Mapping[str, Any] | Record | None = None, /, **fields: Any) -> Any:
        return self._create(collect_input(data, fields))

    def parse(self, data: Mapping[str, Any] | Record | None = None, /, **fields: Any) -> Any:
        """Alias of calling the constructor."""
        return self(data, **fields)

    @abstractmethod
    def _create(self, raw: dict[str, Any]) -> Record:
        """Validate *raw*, assemble a record, and bind its snapshot."""

    @abstractmethod
    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        """Build the next generation of *record* with *changes* applied."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class LayeredConstructor(Constructor):
    """Constructor that can serve as the base of another layer.

    ``assemble`` runs this layer's pipeline into a record of the type the
    outermost layer asks for, so every layer below contributes its fields
    while the outermost layer decides the class (and thus the methods).
    """

    def _create(self, raw: dict[str, Any]) -> Record:
        record = self.assemble(raw, self.record_type)
        return bind_snapshot(record, self, raw)

    @abstractmethod
    def assemble(self, raw: Mapping[str, Any], record_type: type[Record]) -> Record:
        """Validate *raw* for this layer and every layer below it."""
