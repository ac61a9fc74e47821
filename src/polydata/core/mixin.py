"""The single composition point every layer goes through."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

_B = TypeVar("_B")
_M = TypeVar("_M")


def mixin(base: _B, extension: Callable[[_B], _M]) -> _M:
    """Layer *extension* over *base* and return the resulting constructor."""
    logger.debug(
        "Layering %s over %r",
        getattr(extension, "__name__", repr(extension)),
        base,
    )
    return extension(base)
