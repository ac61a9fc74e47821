"""Plain-data descriptions of constructors.

The CLI renders these either as Rich tables or as JSON, so everything
here is JSON-serializable.
"""

from __future__ import annotations

from typing import Any

from polydata.core.base import Constructor
from polydata.core.entity import ENTITY_FIELDS, Entity
from polydata.core.polymorphic import PolymorphicBase
from polydata.core.record import Record


def _methods_of(record_type: type, stop: type) -> list[str]:
    """Public method names defined between *record_type* and *stop* in the MRO."""
    names: dict[str, None] = {}
    for klass in record_type.__mro__:
        if klass is stop or klass is object:
            break
        for name, value in vars(klass).items():
            if callable(value) and not name.startswith("_"):
                names.setdefault(name, None)
    return sorted(names)


def describe_constructor(ctor: Constructor, *, include_json_schema: bool = False) -> dict[str, Any]:
    """Summarize *ctor*: kind, fields, methods and (for polymorphic) variants."""
    is_entity = issubclass(ctor.record_type, Entity)
    fields = list(ctor.schema.field_names)
    if is_entity:
        fields += [name for name in ENTITY_FIELDS if name not in fields]

    result: dict[str, Any] = {
        "name": ctor.name,
        "kind": ctor.kind,
        "entity": is_entity,
        "fields": fields,
        "methods": _methods_of(ctor.record_type, Record),
    }

    if isinstance(ctor, PolymorphicBase):
        result["discriminator"] = ctor.discriminator
        result["variants"] = {
            tag: {
                "fields": list(ctor.schema.branch(tag).field_names),
                "methods": _methods_of(ctor.variant_type(tag), ctor.record_type),
            }
            for tag in ctor.variants
        }

    if include_json_schema:
        result["json_schema"] = ctor.schema.json_schema()
    return result
