"""Tests for polymorphic entities."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from polydata import (
    Entity,
    PolymorphicEntityClass,
    polymorphic_entity,
    polymorphic_entity_mixin,
)
from polydata.core.record import snapshot_of
from polydata.errors import IdentityError, InvalidDataError, SchemaDefinitionError
from tests.conftest import (
    ORDERED_AT,
    SHIPPED_AT,
    FakeClock,
    PendingFields,
    PolyData,
    SampleData,
    ShippedFields,
    UserRef,
)

Shipment = polymorphic_entity(
    discriminator="status",
    base_schema=UserRef,
    base_methods={"describe": lambda self: f"{self.id} for {self.user_id}"},
    schemas={"pending": PendingFields, "shipped": ShippedFields},
    methods={"shipped": {"track": lambda self: self.shipped_at}},
    name="Shipment",
)


def _pending(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "id": "s1",
        "user_id": "u1",
        "ordered_at": ORDERED_AT,
        "pending_reason": "awaiting stock",
    }
    values.update(overrides)
    return values


class TestDefinition:
    def test_kind_and_variants(self) -> None:
        assert isinstance(Shipment, PolymorphicEntityClass)
        assert Shipment.kind == "polymorphic entity"
        assert Shipment.variants == ["pending", "shipped"]
        assert Shipment.shipped.name == "Shipment.shipped"

    def test_mixin_over_existing_polymorphic(self) -> None:
        wrapped = polymorphic_entity_mixin(PolyData)
        record = wrapped.pending(_pending())
        assert record.id == "s1"
        assert record.refresh(0) == ORDERED_AT
        assert record.notify() == "Notifying user u1"

    def test_rejects_plain_data_base(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            polymorphic_entity_mixin(SampleData)  # type: ignore[arg-type]


class TestConstruction:
    def test_universal(self, clock: FakeClock) -> None:
        record = Shipment(id="s2", status="shipped", user_id="u2", shipped_at=SHIPPED_AT)
        assert record.id == "s2"
        assert record.status == "shipped"
        assert record.track() == SHIPPED_AT
        assert record.describe() == "s2 for u2"
        assert record.created_at == record.updated_at == clock.current

    def test_per_tag(self) -> None:
        record = Shipment.pending(_pending())
        assert record.status == "pending"
        assert record.pending_reason == "awaiting stock"
        assert not hasattr(record, "track")

    def test_record_types(self) -> None:
        record = Shipment.pending(_pending())
        assert isinstance(record, Entity)
        assert isinstance(record, Shipment.record_type)
        assert isinstance(record, Shipment.base.variant_type("pending"))

    def test_missing_id(self) -> None:
        with pytest.raises(IdentityError):
            Shipment(status="shipped", user_id="u", shipped_at=SHIPPED_AT)
        with pytest.raises(IdentityError):
            Shipment.pending(_pending(id=""))

    def test_invalid_variant_data(self) -> None:
        with pytest.raises(InvalidDataError):
            Shipment.shipped(id="s3", user_id="u")

    def test_timestamps_supplied(self) -> None:
        created = datetime(2023, 1, 1, tzinfo=UTC)
        updated = datetime(2023, 1, 2, tzinfo=UTC)
        record = Shipment.pending(_pending(created_at=created, updated_at=updated))
        assert record.created_at == created
        assert record.updated_at == updated

    def test_created_at_falls_back_to_updated_at(self) -> None:
        updated = datetime(2023, 6, 1, tzinfo=UTC)
        record = Shipment(_pending(status="pending", updated_at=updated.isoformat()))
        assert record.created_at == updated
        assert record.updated_at == updated

    def test_unparsable_timestamps_default_to_now(self, clock: FakeClock) -> None:
        record = Shipment.pending(_pending(created_at="??", updated_at="??"))
        assert record.created_at == record.updated_at == clock.current

    def test_entity_fields_in_to_dict(self) -> None:
        record = Shipment.pending(_pending())
        assert {"id", "created_at", "updated_at", "status"} <= set(record.to_dict())


class TestCopy:
    def test_copy_keeps_created_and_refreshes_updated(self, clock: FakeClock) -> None:
        record = Shipment.pending(_pending())
        clock.advance(hours=1)
        copied = record.copy(pending_reason="restocked")
        assert copied.pending_reason == "restocked"
        assert copied.id == "s1"
        assert copied.created_at == record.created_at
        assert copied.updated_at == clock.current
        assert copied.updated_at > record.updated_at

    def test_copy_changes_id(self) -> None:
        record = Shipment.pending(_pending())
        assert record.copy(id="s9").id == "s9"

    def test_copy_switches_tag(self, clock: FakeClock) -> None:
        record = Shipment.pending(_pending())
        clock.advance(days=1)
        shipped = record.copy(status="shipped", shipped_at=SHIPPED_AT)
        assert shipped.status == "shipped"
        assert shipped.track() == SHIPPED_AT
        assert shipped.id == "s1"
        assert shipped.created_at == record.created_at
        assert isinstance(shipped, Entity)

    def test_copy_of_per_tag_record_uses_universal_constructor(self) -> None:
        record = Shipment.shipped(id="s5", user_id="u", shipped_at=SHIPPED_AT)
        assert snapshot_of(record).builder is Shipment
        assert record.copy(user_id="u2").status == "shipped"

    def test_copy_ignores_supplied_timestamps(self, clock: FakeClock) -> None:
        record = Shipment.pending(_pending())
        clock.advance(minutes=5)
        copied = record.copy(created_at=datetime(1999, 1, 1, tzinfo=UTC))
        assert copied.created_at == record.created_at
        assert copied.updated_at == clock.current
