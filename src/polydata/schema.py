"""Schema descriptors and the two merge operations.

A :class:`Schema` wraps pydantic models behind one small contract:
``validate(mapping) -> dict`` or raise :class:`InvalidDataError`.

- AND (:func:`merge_and`): every part validates the same raw input and the
  validated field maps are unioned, later parts winning on collision.
- Discriminated OR (:func:`merge_discriminated`): one branch per tag, each
  branch = base fields + variant fields + ``{discriminator: Literal[tag]}``,
  selected by pydantic's tagged-union dispatch.

INVARIANT: ``validate`` never returns a partially validated map.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import BaseModel, Field, TypeAdapter, create_model

from polydata.config.settings import get_settings
from polydata.errors import InvalidDataError, Issue, SchemaDefinitionError

logger = logging.getLogger(__name__)

SchemaLike = Union["Schema", type[BaseModel]]


def _strict_flag() -> bool | None:
    # None defers to the model's own config; False would override it.
    return True if get_settings().strict else None


def _fields_of(model: BaseModel) -> dict[str, Any]:
    """Shallow field map of a validated model, extras included."""
    fields = {name: getattr(model, name) for name in type(model).model_fields}
    if model.model_extra:
        fields.update(model.model_extra)
    return fields


class Schema(ABC):
    """Composable validation rule over a mapping-shaped input."""

    name: str = "Schema"

    @property
    @abstractmethod
    def field_names(self) -> tuple[str, ...]:
        """Top-level field names, in declaration order."""

    @abstractmethod
    def validate(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Return the validated field map or raise :class:`InvalidDataError`."""

    @abstractmethod
    def json_schema(self) -> dict[str, Any]:
        """JSON Schema document describing accepted input."""

    def and_(self, other: SchemaLike) -> IntersectionSchema:
        return merge_and(self, other)

    def __and__(self, other: SchemaLike) -> IntersectionSchema:
        return merge_and(self, other)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class ModelSchema(Schema):
    """A single pydantic model used as a schema."""

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model
        self.name = model.__name__

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.model.model_fields)

    def validate(self, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            validated = self.model.model_validate(dict(data), strict=_strict_flag())
        except pydantic.ValidationError as exc:
            logger.debug("Validation failed for %s: %d issue(s)", self.name, exc.error_count())
            raise InvalidDataError.from_validation_error(exc, schema_name=self.name) from exc
        return _fields_of(validated)

    def json_schema(self) -> dict[str, Any]:
        return self.model.model_json_schema()


class IntersectionSchema(Schema):
    """Logical AND of several schemas over the same input."""

    def __init__(self, parts: tuple[Schema, ...]) -> None:
        flat: list[Schema] = []
        for part in parts:
            if isinstance(part, IntersectionSchema):
                flat.extend(part.parts)
            else:
                flat.append(part)
        self.parts = tuple(flat)
        self.name = " & ".join(part.name for part in self.parts)

    @property
    def field_names(self) -> tuple[str, ...]:
        names: dict[str, None] = {}
        for part in self.parts:
            names.update(dict.fromkeys(part.field_names))
        return tuple(names)

    def validate(self, data: Mapping[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        issues: list[Issue] = []
        for part in self.parts:
            try:
                merged.update(part.validate(data))
            except InvalidDataError as exc:
                issues.extend(exc.issues)
        if issues:
            raise InvalidDataError(issues, schema_name=self.name)
        return merged

    def json_schema(self) -> dict[str, Any]:
        return {"title": self.name, "allOf": [part.json_schema() for part in self.parts]}


class DiscriminatedSchema(Schema):
    """Tagged union: base fields plus exactly one variant branch.

    Attributes:
        discriminator: Field whose literal value selects the branch.
        tags: Branch tags in declaration order.
    """

    def __init__(
        self,
        discriminator: str,
        base: type[BaseModel],
        branches: dict[str, type[BaseModel]],
        *,
        name: str | None = None,
    ) -> None:
        self.discriminator = discriminator
        self.base = base
        self.name = name or base.__name__
        self._branches = branches
        models = tuple(branches.values())
        if len(models) == 1:
            self._adapter: TypeAdapter[Any] = TypeAdapter(models[0])
        else:
            self._adapter = TypeAdapter(
                Annotated[Union[models], Field(discriminator=discriminator)]  # noqa: UP007
            )

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._branches)

    @property
    def field_names(self) -> tuple[str, ...]:
        names: dict[str, None] = {self.discriminator: None}
        names.update(dict.fromkeys(self.base.model_fields))
        for model in self._branches.values():
            names.update(dict.fromkeys(model.model_fields))
        return tuple(names)

    def branch(self, tag: str) -> ModelSchema:
        """Schema of the single branch selected by *tag*."""
        try:
            return ModelSchema(self._branches[tag])
        except KeyError:
            msg = f"Unknown variant {tag!r}; expected one of {list(self._branches)}"
            raise KeyError(msg) from None

    def validate(self, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            validated = self._adapter.validate_python(dict(data), strict=_strict_flag())
        except pydantic.ValidationError as exc:
            logger.debug("Validation failed for %s: %d issue(s)", self.name, exc.error_count())
            raise InvalidDataError.from_validation_error(exc, schema_name=self.name) from exc
        return _fields_of(validated)

    def json_schema(self) -> dict[str, Any]:
        return self._adapter.json_schema()


def as_schema(value: SchemaLike) -> Schema:
    """Coerce a pydantic model class (or an existing schema) to a :class:`Schema`."""
    if isinstance(value, Schema):
        return value
    if isinstance(value, type) and issubclass(value, BaseModel):
        return ModelSchema(value)
    msg = f"Expected a pydantic model class or Schema, got {value!r}"
    raise SchemaDefinitionError(msg)


def _as_model(value: SchemaLike, role: str) -> type[BaseModel]:
    if isinstance(value, ModelSchema):
        return value.model
    if isinstance(value, type) and issubclass(value, BaseModel):
        return value
    msg = f"{role} must be a pydantic model class, got {value!r}"
    raise SchemaDefinitionError(msg)


def merge_and(base: SchemaLike, extension: SchemaLike) -> IntersectionSchema:
    """Schema that requires both *base* and *extension* to validate."""
    return IntersectionSchema((as_schema(base), as_schema(extension)))


def merge_discriminated(
    discriminator: str,
    base: SchemaLike,
    variants: Mapping[str, SchemaLike],
    *,
    name: str | None = None,
) -> DiscriminatedSchema:
    """Build a tagged union with one branch per entry of *variants*.

    Each branch model inherits from the variant model first and the base
    model second, so a variant field shadows a same-named base field.

    Raises:
        SchemaDefinitionError: *variants* is empty, a schema is not
            model-shaped, or a schema already declares *discriminator*.
    """
    if not variants:
        msg = "A discriminated schema needs at least one variant"
        raise SchemaDefinitionError(msg)

    base_model = _as_model(base, "Base schema")
    if discriminator in base_model.model_fields:
        msg = f"Base schema {base_model.__name__} must not declare discriminator {discriminator!r}"
        raise SchemaDefinitionError(msg)

    branches: dict[str, type[BaseModel]] = {}
    for tag, variant in variants.items():
        variant_model = _as_model(variant, f"Variant {tag!r}")
        if discriminator in variant_model.model_fields:
            msg = f"Variant {tag!r} must not declare discriminator {discriminator!r}"
            raise SchemaDefinitionError(msg)
        fields: dict[str, Any] = {discriminator: (Literal[tag], ...)}
        branches[tag] = create_model(
            f"{base_model.__name__}[{tag}]",
            __base__=(variant_model, base_model),
            **fields,
        )

    logger.debug(
        "Built discriminated schema on %r with variants %s",
        discriminator,
        list(branches),
    )
    return DiscriminatedSchema(discriminator, base_model, branches, name=name)
