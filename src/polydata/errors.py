"""Error taxonomy for polydata.

INVARIANT: A failed construction raises and returns nothing.
Validation and identity failures carry structured ``Issue`` payloads
converted from pydantic's ``ValidationError``. Timestamp resolution is
deliberately absent from this module: it never fails.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import BaseModel, Field


class Issue(BaseModel):
    """One violated rule within an :class:`InvalidDataError`."""

    model_config = {"frozen": True}

    loc: tuple[str | int, ...] = ()
    message: str
    type: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @property
    def path(self) -> str:
        """Dotted field path, e.g. ``products.0.price``."""
        return ".".join(str(part) for part in self.loc)

    @classmethod
    def from_pydantic(cls, error: Any) -> Issue:
        ctx = error.get("ctx") or {}
        return cls(
            loc=tuple(error.get("loc", ())),
            message=error.get("msg", ""),
            type=error.get("type", "value_error"),
            detail={k: str(v) for k, v in ctx.items()},
        )


class PolydataError(Exception):
    """Root of every error raised by polydata."""

    code = "POLYDATA_ERROR"


class InvalidDataError(PolydataError, ValueError):
    """Input failed the composed schema of a constructor.

    Attributes:
        issues: Every violated rule, in the order the schema reported them.
        schema_name: Name of the schema that rejected the input.
    """

    code = "INVALID_DATA"

    def __init__(self, issues: tuple[Issue, ...] | list[Issue], *, schema_name: str = "") -> None:
        self.issues = tuple(issues)
        self.schema_name = schema_name
        super().__init__(self._render())

    @classmethod
    def from_validation_error(
        cls,
        exc: pydantic.ValidationError,
        *,
        schema_name: str = "",
    ) -> InvalidDataError:
        issues = [Issue.from_pydantic(err) for err in exc.errors(include_url=False)]
        return cls(issues, schema_name=schema_name or exc.title)

    @property
    def paths(self) -> list[str]:
        return [issue.path for issue in self.issues]

    def _render(self) -> str:
        count = len(self.issues)
        noun = "issue" if count == 1 else "issues"
        head = f"{count} validation {noun}"
        if self.schema_name:
            head += f" for {self.schema_name}"
        lines = [head]
        for issue in self.issues:
            where = issue.path or "<root>"
            lines.append(f"  {where}: {issue.message} [{issue.type}]")
        return "\n".join(lines)


class IdentityError(InvalidDataError):
    """The entity ``id`` is missing, empty, or not a string."""

    code = "INVALID_IDENTITY"


class SchemaDefinitionError(PolydataError, TypeError):
    """A constructor or schema was declared with unusable options."""

    code = "INVALID_DEFINITION"


class ConfigurationError(PolydataError):
    """The discovered polydata configuration could not be read."""

    code = "INVALID_CONFIG"
