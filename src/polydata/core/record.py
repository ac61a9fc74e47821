"""Record: the instance base class, and its input snapshot.

Record types are built once per constructor (and once per variant tag),
with the layer's methods as class attributes. Validated fields live in the
instance ``__dict__``; the raw input that produced an instance is kept in a
separate :class:`Snapshot` so ``copy`` can rebuild from it.

INVARIANT: polydata never mutates a record after construction.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

from polydata.errors import SchemaDefinitionError

if TYPE_CHECKING:
    from typing import Self

RESERVED_NAMES = frozenset({"copy", "to_dict"})

_SNAPSHOT_ATTR = "_snapshot"


class Rebuilder(Protocol):
    """Anything that can produce the next generation of a record."""

    def copy_record(self, record: Record, changes: dict[str, Any]) -> Record: ...


@dataclass(frozen=True)
class Snapshot:
    """Last-applied raw input of a record and the entry point that built it."""

    builder: Rebuilder
    raw: Mapping[str, Any]


class Record:
    """Base class of every instance a polydata constructor returns."""

    def copy(self, partial: Mapping[str, Any] | None = None, /, **changes: Any) -> Self:
        """Return a new, fully re-validated record with *changes* applied.

        Fields not mentioned keep their current values. The original record
        is left untouched.
        """
        update = {**(partial or {}), **changes}
        snapshot: Snapshot = getattr(self, _SNAPSHOT_ATTR)
        return snapshot.builder.copy_record(self, update)  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Shallow map of the record's fields."""
        return {k: v for k, v in vars(self).items() if not k.startswith("_")}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({body})"


def new_record(record_type: type[Record]) -> Record:
    """Allocate an empty record without running any ``__init__``."""
    return record_type.__new__(record_type)


def assign_fields(record: Record, fields: Mapping[str, Any]) -> None:
    record.__dict__.update(fields)


def bind_snapshot(record: Record, builder: Rebuilder, raw: Mapping[str, Any]) -> Record:
    record.__dict__[_SNAPSHOT_ATTR] = Snapshot(builder, MappingProxyType(dict(raw)))
    return record


def snapshot_of(record: Record) -> Snapshot:
    return getattr(record, _SNAPSHOT_ATTR)


def make_record_type(
    name: str,
    bases: tuple[type[Record], ...],
    methods: Mapping[str, Callable[..., Any]] | None,
) -> type[Record]:
    """Create the record class for one layer (or one variant tag).

    Raises:
        SchemaDefinitionError: a method is not callable or shadows a
            framework name (``copy``, ``to_dict``, dunders).
    """
    namespace: dict[str, Any] = {}
    for method_name, fn in (methods or {}).items():
        if method_name in RESERVED_NAMES or method_name.startswith("__"):
            msg = f"Method name {method_name!r} is reserved"
            raise SchemaDefinitionError(msg)
        if not callable(fn):
            msg = f"Method {method_name!r} of {name} is not callable"
            raise SchemaDefinitionError(msg)
        namespace[method_name] = fn
    namespace["__qualname__"] = name
    namespace["__module__"] = "polydata.records"
    return type(name, bases, namespace)


def collect_input(
    data: Mapping[str, Any] | Record | None,
    fields: Mapping[str, Any],
) -> dict[str, Any]:
    """Merge a positional input (mapping or record) with keyword fields."""
    if data is None:
        raw: dict[str, Any] = {}
    elif isinstance(data, Record):
        raw = data.to_dict()
    elif isinstance(data, Mapping):
        raw = dict(data)
    else:
        msg = f"Constructor input must be a mapping or a record, got {type(data).__name__}"
        raise TypeError(msg)
    raw.update(fields)
    return raw
