"""Shared pytest fixtures and sample constructors for polydata tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from click.testing import CliRunner
from pydantic import BaseModel, model_validator

from polydata import data, polymorphic_data
from polydata.config.settings import reset_settings


class FakeClock:
    """Callable stand-in for :func:`polydata.core.clock.now`."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current += timedelta(**delta)
        return self.current


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Isolate every test from POLYDATA_* env vars and cached settings."""
    for var in (
        "POLYDATA_STRICT",
        "POLYDATA_UTC_TIMESTAMPS",
        "POLYDATA_VERBOSE",
        "POLYDATA_LOG_JSON",
        "POLYDATA_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root and polydata logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("polydata")
    pkg_handlers = pkg.handlers[:]
    pkg_level = pkg.level
    pkg_propagate = pkg.propagate
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.handlers = pkg_handlers
    pkg.setLevel(pkg_level)
    pkg.propagate = pkg_propagate


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Pin polydata's notion of now; advance it explicitly."""
    fake = FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=UTC))
    monkeypatch.setattr("polydata.core.clock.now", fake)
    return fake


# ---------------------------------------------------------------------------
# Sample schemas and constructors
# ---------------------------------------------------------------------------


class SampleSchema(BaseModel):
    prop1: str
    prop2: int
    prop3: datetime
    prop4: bool
    prop5: list[int]

    @model_validator(mode="after")
    def _prop2_below_length(self) -> SampleSchema:
        if self.prop2 >= len(self.prop5):
            raise ValueError("prop2 must be smaller than the length of prop5")
        return self


class NestedSchema(BaseModel):
    prop6: dict[str, str]


SampleData = data(
    schema=SampleSchema,
    methods={"sample_method": lambda self: self.prop2 * 10},
    name="SampleData",
)

SampleWithBase = data(
    base=SampleData,
    schema=NestedSchema,
    methods={"sample_method2": lambda self: self.prop6["a"]},
    name="SampleWithBase",
)


def sample_input(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "prop1": "string",
        "prop2": 2,
        "prop3": datetime(2024, 5, 1, tzinfo=UTC),
        "prop4": True,
        "prop5": [1, 2, 3],
    }
    values.update(overrides)
    return values


class UserRef(BaseModel):
    user_id: str


class PendingFields(BaseModel):
    ordered_at: datetime
    pending_reason: str


class ShippedFields(BaseModel):
    shipped_at: datetime


def _refresh(self: Any, seconds: float) -> datetime:
    return self.ordered_at + timedelta(seconds=seconds)


PolyData = polymorphic_data(
    discriminator="status",
    base_schema=UserRef,
    base_methods={"notify": lambda self: f"Notifying user {self.user_id}"},
    schemas={"pending": PendingFields, "shipped": ShippedFields},
    methods={
        "pending": {"refresh": _refresh},
        "shipped": {"track": lambda self: self.shipped_at},
    },
    name="PolyData",
)


ORDERED_AT = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)
SHIPPED_AT = datetime(2024, 3, 2, 17, 0, tzinfo=UTC)
