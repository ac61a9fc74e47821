"""Entity layer for polymorphic data classes.

Identity and timestamps are attached at both entry points of a polymorphic
constructor: the universal call and every per-tag constructor.

Timestamp policy differs from :mod:`polydata.core.entity` on purpose:
``created_at`` falls back to the supplied ``updated_at`` before falling
back to now, so a record loaded with only ``updated_at`` keeps the best
timestamp available.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from polydata.core import clock
from polydata.core.entity import (
    ENTITY_FIELDS,
    entity_record_type,
    next_generation,
    parse_id,
    parse_timestamp,
)
from polydata.core.mixin import mixin
from polydata.core.polymorphic import (
    MethodSet,
    PolymorphicBase,
    PolymorphicDataClass,
    polymorphic_data,
)
from polydata.core.record import Record, assign_fields, make_record_type
from polydata.errors import SchemaDefinitionError
from polydata.schema import SchemaLike

logger = logging.getLogger(__name__)


def attach_identity(record: Record, raw: Mapping[str, Any]) -> Record:
    """Assign ``id``, ``created_at`` and ``updated_at`` from *raw* onto *record*.

    Raises:
        IdentityError: ``id`` is absent or empty.
    """
    entity_id = parse_id(raw)
    stamp = clock.now()
    updated_at = parse_timestamp(raw.get("updated_at"), "updated_at")
    created_at = parse_timestamp(raw.get("created_at"), "created_at") or updated_at or stamp
    assign_fields(
        record,
        {"id": entity_id, "created_at": created_at, "updated_at": updated_at or stamp},
    )
    return record


class PolymorphicEntityClass(PolymorphicBase):
    """Polymorphic data class whose records are entities."""

    kind = "polymorphic entity"

    def __init__(self, base: PolymorphicDataClass) -> None:
        if not isinstance(base, PolymorphicDataClass):
            msg = f"polymorphic_entity_mixin() needs a polymorphic data class, got {base!r}"
            raise SchemaDefinitionError(msg)
        self.base = base
        self.name = base.name
        self.schema = base.schema
        self.discriminator = base.discriminator
        self.variants = list(base.variants)
        self.record_type = entity_record_type(base.record_type)
        # Variant types also derive from the entity base type, so every record
        # is an instance of ``self.record_type``.
        self._variant_types = {
            tag: make_record_type(
                base.variant_type(tag).__name__,
                (base.variant_type(tag), self.record_type),
                None,
            )
            for tag in self.variants
        }
        self._bind_variants()
        logger.debug("Defined polymorphic entity %s", self.name)

    def assemble(
        self,
        raw: Mapping[str, Any],
        record_types: Mapping[str, type[Record]] | None = None,
        *,
        tag: str | None = None,
    ) -> Record:
        types = record_types or self._variant_types
        if tag is None:
            rest = {k: v for k, v in raw.items() if k not in ENTITY_FIELDS}
            record = self.base.assemble(rest, types)
        else:
            record = self.base[tag].assemble(raw, types)
        return attach_identity(record, raw)

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        return self._create(next_generation(record, changes))


def polymorphic_entity_mixin(base: PolymorphicDataClass) -> PolymorphicEntityClass:
    """Layer identity and timestamps over every entry point of *base*."""
    return mixin(base, PolymorphicEntityClass)


def polymorphic_entity(
    *,
    discriminator: str,
    base_schema: SchemaLike,
    schemas: Mapping[str, SchemaLike],
    base_methods: MethodSet | None = None,
    methods: Mapping[str, MethodSet] | None = None,
    name: str | None = None,
) -> PolymorphicEntityClass:
    """Declare a polymorphic data class and layer the entity extension over it."""
    return polymorphic_entity_mixin(
        polymorphic_data(
            discriminator=discriminator,
            base_schema=base_schema,
            schemas=schemas,
            base_methods=base_methods,
            methods=methods,
            name=name,
        )
    )
