"""Entity layer: identity plus created/updated bookkeeping.

``entity_mixin(base)`` wraps any data constructor so that its records
also carry ``id``, ``created_at`` and ``updated_at``.

INVARIANT: A missing or empty ``id`` raises :class:`IdentityError`.
Timestamps never raise: absent or unparsable values resolve to now.
``copy`` keeps ``created_at`` and stamps ``updated_at`` with now.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Annotated, Any

import pydantic
from pydantic import StringConstraints, TypeAdapter

from polydata.core import clock
from polydata.core.base import LayeredConstructor
from polydata.core.data import DataClass, data
from polydata.core.mixin import mixin
from polydata.core.record import Record, assign_fields, make_record_type, snapshot_of
from polydata.errors import IdentityError, Issue, SchemaDefinitionError
from polydata.schema import SchemaLike

logger = logging.getLogger(__name__)

ENTITY_FIELDS = ("id", "created_at", "updated_at")
TIMESTAMP_FIELDS = ("created_at", "updated_at")

_id_adapter: TypeAdapter[str] = TypeAdapter(Annotated[str, StringConstraints(min_length=1)])
_timestamp_adapter: TypeAdapter[datetime] = TypeAdapter(datetime)


class Entity(Record):
    """Marker base of every entity record."""

    id: str
    created_at: datetime
    updated_at: datetime


def parse_id(raw: Mapping[str, Any]) -> str:
    """Return the non-empty string ``id`` of *raw*.

    Raises:
        IdentityError: ``id`` is absent, empty, or not a string.
    """
    if "id" not in raw:
        issue = Issue(loc=("id",), message="Field required", type="missing")
        raise IdentityError([issue], schema_name="Entity")
    try:
        return _id_adapter.validate_python(raw["id"], strict=True)
    except pydantic.ValidationError as exc:
        issues = [
            Issue.from_pydantic({**err, "loc": ("id", *err["loc"])})
            for err in exc.errors(include_url=False)
        ]
        raise IdentityError(issues, schema_name="Entity") from exc


def parse_timestamp(value: Any, field_name: str) -> datetime | None:
    """Coerce *value* to a datetime, or None when absent or unparsable."""
    if value is None:
        return None
    try:
        return _timestamp_adapter.validate_python(value, strict=False)
    except pydantic.ValidationError:
        logger.debug("Unparsable %s %r, falling back to now", field_name, value)
        return None


def resolve_timestamps(raw: Mapping[str, Any]) -> tuple[datetime, datetime]:
    """Resolve ``(created_at, updated_at)``, each defaulting to now."""
    stamp = clock.now()
    created_at = parse_timestamp(raw.get("created_at"), "created_at") or stamp
    updated_at = parse_timestamp(raw.get("updated_at"), "updated_at") or stamp
    return created_at, updated_at


def entity_record_type(record_type: type[Record]) -> type[Record]:
    """Record type of *record_type* with the :class:`Entity` marker mixed in."""
    if issubclass(record_type, Entity):
        return record_type
    return make_record_type(record_type.__name__, (record_type, Entity), None)


def next_generation(record: Record, changes: Mapping[str, Any]) -> dict[str, Any]:
    """Input for the copy of an entity record.

    Caller-supplied timestamps are dropped: ``created_at`` carries forward
    from *record* and ``updated_at`` is always now. Fields hidden by a
    same-named method are taken from the last raw input.
    """
    rest = {k: v for k, v in changes.items() if k not in TIMESTAMP_FIELDS}
    carried = {**snapshot_of(record).raw, **record.to_dict()}
    return {**carried, **rest, "updated_at": clock.now()}


class EntityClass(LayeredConstructor):
    """Data constructor wrapped with identity and timestamps.

    ``schema`` is the base's schema: entity fields are checked by this layer
    directly rather than through the composed schema.
    """

    kind = "entity"

    def __init__(self, base: LayeredConstructor) -> None:
        if not isinstance(base, LayeredConstructor):
            msg = (
                f"entity_mixin() needs a data constructor, got {base!r}; "
                "use polymorphic_entity_mixin() for polymorphic data"
            )
            raise SchemaDefinitionError(msg)
        self.base = base
        self.name = base.name
        self.schema = base.schema
        self.record_type = entity_record_type(base.record_type)
        logger.debug("Defined entity %s", self.name)

    def assemble(self, raw: Mapping[str, Any], record_type: type[Record]) -> Record:
        entity_id = parse_id(raw)
        created_at, updated_at = resolve_timestamps(raw)
        record = self.base.assemble(raw, record_type)
        assign_fields(
            record,
            {"id": entity_id, "created_at": created_at, "updated_at": updated_at},
        )
        return record

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        return self._create(next_generation(record, changes))


def entity_mixin(base: LayeredConstructor) -> EntityClass:
    """Layer identity and timestamps over *base*."""
    return mixin(base, EntityClass)


def entity(
    *,
    schema: SchemaLike,
    methods: Mapping[str, Callable[..., Any]] | None = None,
    base: LayeredConstructor | None = None,
    name: str | None = None,
) -> EntityClass:
    """Declare a data class and layer the entity extension over it."""
    inner: DataClass = data(schema=schema, methods=methods, base=base, name=name)
    return entity_mixin(inner)
