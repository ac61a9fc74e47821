"""Polymorphic data constructor builder.

``polymorphic_data(...)`` declares a discriminated union of variants that
share a base schema and base methods. The result is callable with a full
input (the discriminator selects the variant) and exposes one constructor
per tag that fills in the discriminator itself.

Record types are built once per tag at definition time: a shared base
type carrying the base methods, and one subclass per tag carrying that
tag's methods.

INVARIANT: A record has the base methods plus the methods of its own tag
and no other tag's, including after a ``copy`` that changes the tag.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from polydata.core.base import Constructor
from polydata.core.record import (
    RESERVED_NAMES,
    Record,
    assign_fields,
    bind_snapshot,
    make_record_type,
    new_record,
    snapshot_of,
)
from polydata.errors import SchemaDefinitionError
from polydata.schema import DiscriminatedSchema, ModelSchema, SchemaLike, merge_discriminated

logger = logging.getLogger(__name__)

MethodSet = Mapping[str, Callable[..., Any]]


def _type_suffix(tag: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in tag.replace("-", "_").split("_"))


class VariantConstructor(Constructor):
    """Constructor bound to one tag of a polymorphic owner.

    Attributes:
        tag: The discriminator value this constructor sets.
        owner: The polymorphic constructor the variant belongs to.
    """

    def __init__(self, owner: PolymorphicBase, tag: str) -> None:
        self.owner = owner
        self.tag = tag
        self.kind = owner.kind
        self.name = f"{owner.name}.{tag}"
        self.schema: ModelSchema = owner.schema.branch(tag)
        self.record_type = owner.variant_type(tag)

    def _create(self, raw: dict[str, Any]) -> Record:
        return self.owner._create(raw, tag=self.tag)

    def assemble(
        self,
        raw: Mapping[str, Any],
        record_types: Mapping[str, type[Record]] | None = None,
    ) -> Record:
        return self.owner.assemble(raw, record_types, tag=self.tag)

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        return self.owner.copy_record(record, changes)


class PolymorphicBase(Constructor):
    """Shared surface of polymorphic constructors.

    Attributes:
        discriminator: Field holding the variant tag.
        variants: Known tags, in declaration order.
    """

    schema: DiscriminatedSchema
    discriminator: str
    variants: list[str]
    _variant_types: dict[str, type[Record]]
    _constructors: dict[str, VariantConstructor]

    def variant_type(self, tag: str) -> type[Record]:
        """Record type used for records of *tag*."""
        return self._variant_types[tag]

    @abstractmethod
    def assemble(
        self,
        raw: Mapping[str, Any],
        record_types: Mapping[str, type[Record]] | None = None,
        *,
        tag: str | None = None,
    ) -> Record: ...

    def _create(self, raw: dict[str, Any], *, tag: str | None = None) -> Record:
        if tag is not None:
            raw = {**raw, self.discriminator: tag}
        record = self.assemble(raw, tag=tag)
        return bind_snapshot(record, self, raw)

    def __getitem__(self, tag: str) -> VariantConstructor:
        try:
            return self._constructors[tag]
        except KeyError:
            msg = f"{self.name} has no variant {tag!r}; expected one of {self.variants}"
            raise KeyError(msg) from None

    def __getattr__(self, name: str) -> VariantConstructor:
        constructors = self.__dict__.get("_constructors", {})
        if name in constructors:
            return constructors[name]
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __iter__(self) -> Iterator[VariantConstructor]:
        return iter(self._constructors.values())

    def __contains__(self, tag: object) -> bool:
        return tag in self._constructors

    def _bind_variants(self) -> None:
        self._constructors = {tag: VariantConstructor(self, tag) for tag in self.variants}


class PolymorphicDataClass(PolymorphicBase):
    """Discriminated union of variants sharing a base schema and methods."""

    kind = "polymorphic"

    def __init__(
        self,
        *,
        discriminator: str,
        base_schema: SchemaLike,
        base_methods: MethodSet | None,
        schemas: Mapping[str, SchemaLike],
        methods: Mapping[str, MethodSet] | None,
        name: str | None = None,
    ) -> None:
        methods = methods or {}
        unknown = set(methods) - set(schemas)
        if unknown:
            msg = f"Methods declared for unknown variants: {sorted(unknown)}"
            raise SchemaDefinitionError(msg)

        self.schema = merge_discriminated(discriminator, base_schema, schemas, name=name)
        reserved = RESERVED_NAMES.intersection(self.schema.field_names)
        if reserved:
            msg = f"Field names {sorted(reserved)} of {self.schema.name} are reserved"
            raise SchemaDefinitionError(msg)
        self.discriminator = discriminator
        self.name = self.schema.name
        self.variants = list(self.schema.tags)
        self.base_methods = dict(base_methods or {})
        self.methods = {tag: dict(methods.get(tag, {})) for tag in self.variants}

        self.record_type = make_record_type(self.name, (Record,), self.base_methods)
        self._variant_types = {
            tag: make_record_type(
                f"{self.name}{_type_suffix(tag)}",
                (self.record_type,),
                self.methods[tag],
            )
            for tag in self.variants
        }
        self._bind_variants()
        logger.debug(
            "Defined polymorphic data class %s on %r with variants %s",
            self.name,
            discriminator,
            self.variants,
        )

    def assemble(
        self,
        raw: Mapping[str, Any],
        record_types: Mapping[str, type[Record]] | None = None,
        *,
        tag: str | None = None,
    ) -> Record:
        if tag is not None:
            raw = {**raw, self.discriminator: tag}
        validated = self.schema.validate(raw)
        resolved = validated[self.discriminator]
        record_type = (record_types or self._variant_types)[resolved]
        record = new_record(record_type)
        assign_fields(record, validated)
        return record

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record:
        raw = {**snapshot_of(record).raw, **changes}
        return self._create(raw)


def polymorphic_data(
    *,
    discriminator: str,
    base_schema: SchemaLike,
    schemas: Mapping[str, SchemaLike],
    base_methods: MethodSet | None = None,
    methods: Mapping[str, MethodSet] | None = None,
    name: str | None = None,
) -> PolymorphicDataClass:
    """Declare a polymorphic data class.

    Args:
        discriminator: Field name holding the variant tag.
        base_schema: Pydantic model shared by every variant.
        schemas: Variant tag to the pydantic model of that variant's fields.
        base_methods: Methods available on every variant.
        methods: Variant tag to the methods only that variant carries.
        name: Record type name; defaults to the base schema's name.
    """
    return PolymorphicDataClass(
        discriminator=discriminator,
        base_schema=base_schema,
        base_methods=base_methods,
        schemas=schemas,
        methods=methods,
        name=name,
    )
