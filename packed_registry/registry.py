"""Name-keyed registry of packed functions.

A ``Registry`` maps names to ``PackedFunc`` bodies. Registration is two
steps, claim then attach:

    registry.register("add").set_body_simple(add)

A claimed entry is invisible to lookups until its body is attached, and both
steps run under the registry lock, so concurrent readers never see an entry
without a body. Re-registering a present name requires ``override=True``;
the old body stays visible until the new one is attached.

``global_registry()`` returns the process-wide instance. Code that can take
a registry as a parameter should, so tests can use their own instance.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from .adapters import as_packed, from_function, from_method, from_node_method, from_typed
from .config import PackedRegistryConfig
from .errors import DetachedEntryError, DuplicateNameError, MissingFunctionError
from .ext_type import ExtTypeRegistry
from .packed_func import PackedFunc
from .typed import Signature, TypedPackedFunc

logger = logging.getLogger(__name__)


class RegistryEntry:
    """A named slot in a registry; chain one of the ``set_body*`` methods to fill it."""

    __slots__ = ("name", "_registry", "_body")

    def __init__(self, name: str, registry: "Registry") -> None:
        self.name = name
        self._registry = registry
        self._body: Optional[PackedFunc] = None

    @property
    def body(self) -> Optional[PackedFunc]:
        return self._body

    @property
    def ready(self) -> bool:
        return self._body is not None

    def __repr__(self) -> str:
        state = "ready" if self.ready else "pending"
        return f"RegistryEntry({self.name!r}, {state})"

    @property
    def _strict(self) -> bool:
        return self._registry.config.decode.strict

    def _attach_built(self, build: Callable[[], PackedFunc]) -> "RegistryEntry":
        try:
            body = build()
        except Exception:
            # A claim that never received a body must not block the name.
            self._registry._release(self)
            raise
        self._registry._attach(self, body)
        return self

    def set_body(self, f: Any) -> "RegistryEntry":
        """Attach a ``PackedFunc`` or a raw ``(args, rv)`` body."""
        return self._attach_built(lambda: as_packed(f))

    def set_body_typed(self, signature: Signature, impl: Callable[..., Any]) -> "RegistryEntry":
        """Attach ``impl`` under an explicit signature (needed for lambdas)."""
        return self._attach_built(
            lambda: from_typed(signature, impl, strict=self._strict, name=self.name)
        )

    def set_body_simple(self, func: Callable[..., Any]) -> "RegistryEntry":
        """Attach a plain function; the signature comes from its annotations."""
        return self._attach_built(lambda: from_function(func, strict=self._strict))

    def set_body_method(self, method: Any, owner: type | None = None) -> "RegistryEntry":
        """Attach a method or property; the target instance is the first argument."""
        return self._attach_built(lambda: from_method(method, owner, strict=self._strict))

    def set_body_node_method(
        self,
        ref_type: type,
        method: Any,
        node_type: type | None = None,
    ) -> "RegistryEntry":
        """Attach a base-class method called through a ``ref_type`` handle."""
        return self._attach_built(
            lambda: from_node_method(ref_type, method, node_type, strict=self._strict)
        )


class Registry:
    """Thread-safe mapping from names to packed functions."""

    def __init__(self, config: PackedRegistryConfig | None = None) -> None:
        self.config = config or PackedRegistryConfig()
        self.ext_types = ExtTypeRegistry()
        self._lock = threading.Lock()
        self._entries: dict[str, RegistryEntry] = {}

    def register(self, name: str, override: bool = False) -> RegistryEntry:
        """Claim ``name`` and return the entry to attach a body to.

        Raises:
            DuplicateNameError: If ``name`` is present and ``override`` is False.
        """
        if not isinstance(name, str):
            raise TypeError(f"Function names must be strings, got {type(name).__name__}")
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None:
                if not override:
                    raise DuplicateNameError(name)
                logger.debug("Reclaiming %r for override", name)
                return entry
            entry = RegistryEntry(name, self)
            self._entries[name] = entry
        logger.debug("Claimed %r", name)
        return entry

    def _attach(self, entry: RegistryEntry, body: PackedFunc) -> None:
        with self._lock:
            if self._entries.get(entry.name) is not entry:
                raise DetachedEntryError(
                    f"Entry {entry.name!r} was removed from the registry; register it again"
                )
            replaced = entry._body is not None
            entry._body = body
        if replaced:
            level = logging.WARNING if self.config.registry.warn_on_override else logging.DEBUG
            logger.log(level, "Overrode global function %r with %r", entry.name, body)
        else:
            logger.debug("Registered global function %r as %r", entry.name, body)

    def _release(self, entry: RegistryEntry) -> None:
        with self._lock:
            if self._entries.get(entry.name) is entry and entry._body is None:
                del self._entries[entry.name]
                logger.debug("Released unfilled claim on %r", entry.name)

    def remove(self, name: str) -> bool:
        """Remove ``name``; return whether it was present."""
        with self._lock:
            entry = self._entries.pop(name, None)
        if entry is None:
            return False
        logger.debug("Removed global function %r", name)
        return True

    def get(self, name: str) -> Optional[PackedFunc]:
        """Return the body registered under ``name``, or None."""
        with self._lock:
            entry = self._entries.get(name)
            return entry._body if entry is not None else None

    def get_typed(self, name: str, signature: Signature) -> Optional[TypedPackedFunc]:
        """Return a typed view of ``name``: arguments and result checked against ``signature``."""
        body = self.get(name)
        if body is None:
            return None
        return TypedPackedFunc(signature, body, strict=self.config.decode.strict, name=name)

    def list_names(self) -> list[str]:
        """Names with an attached body. Order is not part of the contract."""
        with self._lock:
            names = [name for name, entry in self._entries.items() if entry._body is not None]
        if self.config.registry.sort_names:
            names.sort()
        return names

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry._body is not None)


_GLOBAL_REGISTRY: Optional[Registry] = None
_GLOBAL_LOCK = threading.Lock()


def global_registry() -> Registry:
    """Process-wide registry, created on first use."""
    global _GLOBAL_REGISTRY
    with _GLOBAL_LOCK:
        if _GLOBAL_REGISTRY is None:
            _GLOBAL_REGISTRY = Registry()
        return _GLOBAL_REGISTRY


def register(name: str, override: bool = False) -> RegistryEntry:
    return global_registry().register(name, override)


def get_global_func(name: str, allow_missing: bool = False) -> Optional[PackedFunc]:
    """Look ``name`` up in the global registry.

    Raises:
        MissingFunctionError: If nothing is registered and ``allow_missing`` is False.
    """
    func = global_registry().get(name)
    if func is None and not allow_missing:
        raise MissingFunctionError(f"Cannot find global function {name!r}")
    return func


def remove_global_func(name: str) -> bool:
    return global_registry().remove(name)


def list_global_func_names() -> list[str]:
    return global_registry().list_names()
