"""Extension-type hook: per-type value tables keyed by Python class."""
from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .errors import DuplicateExtTypeError

logger = logging.getLogger(__name__)


def _no_destroy(value: Any) -> None:
    return None


@dataclass(frozen=True, slots=True)
class ExtTypeVTable:
    """Operations the packed layer may apply to values of an extension type."""

    clone: Callable[[Any], Any] = field(default=copy.copy)
    destroy: Callable[[Any], None] = field(default=_no_destroy)


class ExtTypeRegistry:
    """Thread-safe store of extension-type tables."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: dict[type, ExtTypeVTable] = {}

    def register(
        self,
        cls: type,
        vtable: ExtTypeVTable | None = None,
        *,
        override: bool = False,
    ) -> ExtTypeVTable:
        if not isinstance(cls, type):
            raise TypeError(f"Extension types must be classes, got {cls!r}")
        table = vtable or ExtTypeVTable()
        with self._lock:
            if cls in self._tables and not override:
                raise DuplicateExtTypeError(
                    f"Extension type {cls.__qualname__} is already registered"
                )
            self._tables[cls] = table
        logger.debug("Registered extension type %s", cls.__qualname__)
        return table

    def get(self, cls: type) -> Optional[ExtTypeVTable]:
        """Table for ``cls`` or its nearest registered base class."""
        with self._lock:
            for klass in cls.__mro__:
                table = self._tables.get(klass)
                if table is not None:
                    return table
        return None

    def is_registered(self, value: Any) -> bool:
        return self.get(type(value)) is not None

    def registered_types(self) -> list[type]:
        with self._lock:
            return list(self._tables)
