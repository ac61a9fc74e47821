"""Unified settings: init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  (CLI flags, explicit overrides)
  2. Env vars     ``POLYDATA_*`` prefix
  3. TOML table   ``[tool.polydata]`` of the nearest pyproject.toml
  4. Code defaults

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`polydata.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from polydata.config.discovery import find_config, load_config
from polydata.errors import ConfigurationError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from the discovered TOML config."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = load_config(toml_path)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigurationError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class PolydataSettings(BaseSettings):
    """Process-wide polydata settings, frozen after construction.

    Attributes:
        strict: Validate every schema in pydantic strict mode (no coercion
            of e.g. ``"3"`` to ``3`` or ISO strings to datetimes).
        utc_timestamps: Entity timestamps default to aware UTC datetimes;
            when False they default to naive local time.
        verbose: Enable DEBUG-level ``polydata`` logging.
        log_json: Render logs as JSON lines instead of console output.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "POLYDATA_",
        "extra": "ignore",
    }

    config_path: Path | None = None

    strict: bool = False
    utc_timestamps: bool = True

    verbose: bool = False
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        cwd: Path | None = None,
        **overrides: Any,
    ) -> PolydataSettings:
        """Construct settings, discovering the TOML config via walk-up.

        An explicit *config_path* wins over discovery; *overrides* win over
        everything else.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(cwd)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


_active: PolydataSettings | None = None
_active_lock = threading.Lock()


def get_settings() -> PolydataSettings:
    """Return the process-wide settings, loading them on first use."""
    global _active
    with _active_lock:
        if _active is None:
            _active = PolydataSettings.load()
        return _active


def activate_settings(settings: PolydataSettings) -> PolydataSettings:
    """Make *settings* the process-wide settings (e.g. after ``--config``)."""
    global _active
    with _active_lock:
        _active = settings
    return settings


def reset_settings() -> None:
    """Forget active settings so the next :func:`get_settings` reloads."""
    global _active
    with _active_lock:
        _active = None
