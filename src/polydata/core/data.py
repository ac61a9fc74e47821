"""Data constructor builder.

``data(schema=..., methods=..., base=...)`` returns a :class:`DataClass`.
Calling it validates the input against the composed schema, lets the base
layer (if any) assemble its part first, then applies this layer's fields.
Methods come from the record type, a subclass of the base's record type,
so the current layer wins on name collision, including over a field of the
same name.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from polydata.core.base import LayeredConstructor
from polydata.core.record import (
    RESERVED_NAMES,
    Record,
    assign_fields,
    make_record_type,
    new_record,
    snapshot_of,
)
from polydata.errors import SchemaDefinitionError
from polydata.schema import SchemaLike, as_schema, merge_and

logger = logging.getLogger(__name__)


class DataClass(LayeredConstructor):
    """Constructor of plain validated records, optionally layered on a base.

    The base re-validates the same raw input against its own schema during
    ``assemble``. The redundancy keeps each layer's invariants intact even
    when layers are composed independently.
    """

    def __init__(
        self,
        schema: SchemaLike,
        methods: Mapping[str, Callable[..., Any]] | None = None,
        base: LayeredConstructor | None = None,
        *,
        name: str | None = None,
    ) -> None:
        if base is not None and not isinstance(base, LayeredConstructor):
            msg = f"base must be a data or entity constructor, got {base!r}"
            raise SchemaDefinitionError(msg)

        own_schema = as_schema(schema)
        self.base = base
        self.own_schema = own_schema
        self.schema = merge_and(base.schema, own_schema) if base is not None else own_schema
        self.name = name or own_schema.name
        reserved = RESERVED_NAMES.intersection(self.schema.field_names)
        if reserved:
            msg = f"Field names {sorted(reserved)} of {self.name} are reserved"
            raise SchemaDefinitionError(msg)
        self.methods = dict(methods or {})
        base_type = base.record_type if base is not None else Record
        self.record_type = make_record_type(self.name, (base_type,), methods)
        logger.debug(
            "Defined data class %s (base=%s)",
            self.name,
            base.name if base is not None else None,
        )

    def assemble(self, raw: Mapping[str, Any], record_type: type[Record]) -> Record:
        validated = self.schema.validate(raw)
        if self.base is not None:
            record = self.base.assemble(raw, record_type)
        else:
            record = new_record(record_type)
        assign_fields(record, validated)
        # Methods of this layer win over same-named fields.
        for method_name in self.methods:
            record.__dict__.pop(method_name, None)
        return record

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        raw = {**snapshot_of(record).raw, **changes}
        return self._create(raw)


def data(
    *,
    schema: SchemaLike,
    methods: Mapping[str, Callable[..., Any]] | None = None,
    base: LayeredConstructor | None = None,
    name: str | None = None,
) -> DataClass:
    """Declare a data class from a pydantic model and a method set.

    Args:
        schema: Pydantic model class (or :class:`~polydata.schema.Schema`)
            describing this layer's fields. Model validators act as
            refinements over the whole shape.
        methods: Functions taking the record as ``self``.
        base: Constructor to layer on top of; its schema is ANDed with
            *schema* and its methods are inherited.
        name: Record type name; defaults to the schema's name.
    """
    return DataClass(schema, methods, base, name=name)
