"""Tests for schema descriptors and the AND / discriminated merges."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import BaseModel, ConfigDict, model_validator

from polydata.errors import InvalidDataError, SchemaDefinitionError
from polydata.schema import (
    DiscriminatedSchema,
    IntersectionSchema,
    ModelSchema,
    Schema,
    as_schema,
    merge_and,
    merge_discriminated,
)


class Named(BaseModel):
    name: str


class Aged(BaseModel):
    age: int

    @model_validator(mode="after")
    def _non_negative(self) -> Aged:
        if self.age < 0:
            raise ValueError("age must be >= 0")
        return self


class Base(BaseModel):
    user_id: str


class Pending(BaseModel):
    ordered_at: datetime


class Shipped(BaseModel):
    shipped_at: datetime


class TestModelSchema:
    def test_validate_returns_field_map(self) -> None:
        schema = ModelSchema(Named)
        assert schema.validate({"name": "Alice"}) == {"name": "Alice"}

    def test_extra_keys_ignored(self) -> None:
        schema = ModelSchema(Named)
        assert schema.validate({"name": "Alice", "other": 1}) == {"name": "Alice"}

    def test_allowed_extras_are_kept(self) -> None:
        class Open(BaseModel):
            model_config = ConfigDict(extra="allow")
            name: str

        assert ModelSchema(Open).validate({"name": "a", "x": 1}) == {"name": "a", "x": 1}

    def test_failure_raises_structured_error(self) -> None:
        with pytest.raises(InvalidDataError) as excinfo:
            ModelSchema(Named).validate({})
        err = excinfo.value
        assert err.schema_name == "Named"
        assert err.paths == ["name"]
        assert err.issues[0].type == "missing"

    def test_field_names(self) -> None:
        assert ModelSchema(Aged).field_names == ("age",)

    def test_json_schema(self) -> None:
        assert ModelSchema(Named).json_schema()["properties"]["name"]["type"] == "string"


class TestAsSchema:
    def test_model_class_is_wrapped(self) -> None:
        assert isinstance(as_schema(Named), ModelSchema)

    def test_schema_passes_through(self) -> None:
        schema = ModelSchema(Named)
        assert as_schema(schema) is schema

    def test_rejects_other_values(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            as_schema({"name": str})  # type: ignore[arg-type]


class TestSchemaBase:
    def test_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Schema()  # type: ignore[abstract]

    def test_subclass_must_implement_contract(self) -> None:
        class NamesOnly(Schema):
            @property
            def field_names(self) -> tuple[str, ...]:
                return ("a",)

        with pytest.raises(TypeError):
            NamesOnly()  # type: ignore[abstract]


class TestMergeAnd:
    def test_union_of_fields(self) -> None:
        schema = merge_and(Named, Aged)
        assert schema.validate({"name": "Alice", "age": 30}) == {"name": "Alice", "age": 30}
        assert schema.field_names == ("name", "age")

    def test_both_sides_must_validate(self) -> None:
        schema = merge_and(Named, Aged)
        with pytest.raises(InvalidDataError):
            schema.validate({"name": "Alice"})
        with pytest.raises(InvalidDataError):
            schema.validate({"age": 3})

    def test_refinement_applies(self) -> None:
        schema = merge_and(Named, Aged)
        with pytest.raises(InvalidDataError) as excinfo:
            schema.validate({"name": "Bob", "age": -1})
        assert "age must be >= 0" in excinfo.value.issues[0].message

    def test_issues_collected_from_every_part(self) -> None:
        schema = merge_and(Named, Aged)
        with pytest.raises(InvalidDataError) as excinfo:
            schema.validate({})
        assert sorted(excinfo.value.paths) == ["age", "name"]

    def test_nested_intersections_flatten(self) -> None:
        class Extra(BaseModel):
            tag: str

        schema = merge_and(merge_and(Named, Aged), Extra)
        assert isinstance(schema, IntersectionSchema)
        assert len(schema.parts) == 3

    def test_operator_and_method_forms(self) -> None:
        named = ModelSchema(Named)
        assert (named & Aged).field_names == named.and_(Aged).field_names

    def test_last_part_wins_on_collision(self) -> None:
        class Loose(BaseModel):
            value: str

        class Strict(BaseModel):
            value: str

            @model_validator(mode="after")
            def _upper(self) -> Strict:
                self.value = self.value.upper()
                return self

        assert merge_and(Loose, Strict).validate({"value": "x"}) == {"value": "X"}


class TestMergeDiscriminated:
    def _schema(self) -> DiscriminatedSchema:
        return merge_discriminated("status", Base, {"pending": Pending, "shipped": Shipped})

    def test_selects_branch_by_tag(self) -> None:
        when = datetime(2024, 1, 1, tzinfo=UTC)
        out = self._schema().validate({"status": "shipped", "user_id": "u", "shipped_at": when})
        assert out == {"status": "shipped", "user_id": "u", "shipped_at": when}

    def test_branch_requires_base_fields(self) -> None:
        with pytest.raises(InvalidDataError):
            self._schema().validate({"status": "shipped", "shipped_at": datetime.now(UTC)})

    def test_missing_discriminator(self) -> None:
        with pytest.raises(InvalidDataError) as excinfo:
            self._schema().validate({"user_id": "u"})
        assert excinfo.value.issues[0].type == "union_tag_not_found"

    def test_unknown_discriminator(self) -> None:
        with pytest.raises(InvalidDataError) as excinfo:
            self._schema().validate({"status": "lost", "user_id": "u"})
        assert excinfo.value.issues[0].type == "union_tag_invalid"

    def test_tags_keep_declaration_order(self) -> None:
        assert self._schema().tags == ("pending", "shipped")

    def test_branch_schema(self) -> None:
        branch = self._schema().branch("pending")
        assert set(branch.field_names) == {"status", "user_id", "ordered_at"}

    def test_unknown_branch(self) -> None:
        with pytest.raises(KeyError):
            self._schema().branch("lost")

    def test_single_variant(self) -> None:
        schema = merge_discriminated("status", Base, {"pending": Pending})
        when = datetime(2024, 1, 1, tzinfo=UTC)
        assert schema.validate({"status": "pending", "user_id": "u", "ordered_at": when})
        with pytest.raises(InvalidDataError):
            schema.validate({"status": "shipped", "user_id": "u", "ordered_at": when})

    def test_empty_variants_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            merge_discriminated("status", Base, {})

    def test_variant_declaring_discriminator_rejected(self) -> None:
        class Bad(BaseModel):
            status: str

        with pytest.raises(SchemaDefinitionError):
            merge_discriminated("status", Base, {"bad": Bad})

    def test_non_model_base_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            merge_discriminated("status", merge_and(Named, Aged), {"pending": Pending})

    def test_json_schema_has_discriminator(self) -> None:
        doc = self._schema().json_schema()
        assert doc["discriminator"]["propertyName"] == "status"
