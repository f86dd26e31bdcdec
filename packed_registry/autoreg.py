"""Self-registration: declare functions where they are defined, apply at start-up.

Modules declare entries at import time without touching any registry:

    register_global("add").set_body_simple(add)

    @register_func
    def multiply(x: int, y: int) -> int:
        return x * y

Declarations are collected in order and applied by ``ensure_initialized()``,
which is safe to call repeatedly: each registry receives every declaration
exactly once, including declarations made by modules imported later.
"""
from __future__ import annotations

import importlib.util
import itertools
import logging
import sys
import threading
import weakref
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional, Protocol

from .errors import IncompleteDeclarationError
from .ext_type import ExtTypeVTable
from .registry import Registry, global_registry
from .typed import Signature

logger = logging.getLogger(__name__)


class _Applicable(Protocol):
    serial: int

    def apply(self, registry: Registry) -> None:
        ...


_DECLARATIONS: list[_Applicable] = []
_DECLARATIONS_LOCK = threading.Lock()
_SERIAL = itertools.count(1)
# registry -> number of declarations already applied to it
_APPLIED: "weakref.WeakKeyDictionary[Registry, int]" = weakref.WeakKeyDictionary()
_LOADED_MODULES: dict[Path, ModuleType] = {}


def _add_declaration(declaration: _Applicable) -> None:
    with _DECLARATIONS_LOCK:
        _DECLARATIONS.append(declaration)


@dataclass(eq=False)
class Declaration:
    """A pending ``register(name).set_body*(...)`` call."""

    serial: int
    name: str
    override: bool = False
    _attach: Optional[tuple[str, tuple[Any, ...]]] = field(default=None, repr=False)

    def _record(self, method: str, *args: Any) -> "Declaration":
        self._attach = (method, args)
        return self

    def set_body(self, f: Any) -> "Declaration":
        return self._record("set_body", f)

    def set_body_typed(self, signature: Signature, impl: Callable[..., Any]) -> "Declaration":
        return self._record("set_body_typed", signature, impl)

    def set_body_simple(self, func: Callable[..., Any]) -> "Declaration":
        return self._record("set_body_simple", func)

    def set_body_method(self, method: Any, owner: type | None = None) -> "Declaration":
        return self._record("set_body_method", method, owner)

    def set_body_node_method(
        self,
        ref_type: type,
        method: Any,
        node_type: type | None = None,
    ) -> "Declaration":
        return self._record("set_body_node_method", ref_type, method, node_type)

    def apply(self, registry: Registry) -> None:
        if self._attach is None:
            raise IncompleteDeclarationError(
                f"Global function {self.name!r} was declared without a body"
            )
        method, args = self._attach
        entry = registry.register(self.name, self.override)
        getattr(entry, method)(*args)


@dataclass(eq=False)
class ExtTypeDeclaration:
    """A pending extension-type registration."""

    serial: int
    cls: type
    vtable: Optional[ExtTypeVTable] = None
    override: bool = False

    def apply(self, registry: Registry) -> None:
        registry.ext_types.register(self.cls, self.vtable, override=self.override)


def register_global(name: str, override: bool = False) -> Declaration:
    """Declare a global function; attach its body with a ``set_body*`` call."""
    if not isinstance(name, str):
        raise TypeError(f"Function names must be strings, got {type(name).__name__}")
    declaration = Declaration(serial=next(_SERIAL), name=name, override=override)
    _add_declaration(declaration)
    return declaration


def register_func(
    func: Any = None,
    *,
    name: str | None = None,
    override: bool = False,
    signature: Signature | None = None,
    packed: bool = False,
) -> Any:
    """Decorator declaring a function as a global function.

    Usable bare (``@register_func``), with a name (``@register_func("add")``)
    or with keywords. The registered name defaults to the function's ``__name__``. With
    ``packed=True`` the function is used as a raw ``(args, rv)`` body; with a
    ``signature`` it is wrapped under that signature; otherwise its
    annotations provide the signature. The function is returned unchanged.
    """

    def _decorate(target: Callable[..., Any]) -> Callable[..., Any]:
        declaration = register_global(name or target.__name__, override=override)
        if packed:
            declaration.set_body(target)
        elif signature is not None:
            declaration.set_body_typed(signature, target)
        else:
            declaration.set_body_simple(target)
        return target

    if isinstance(func, str):
        name = func
        return _decorate
    if func is None:
        return _decorate
    return _decorate(func)


def register_ext_type(
    cls: type,
    vtable: ExtTypeVTable | None = None,
    *,
    override: bool = False,
) -> ExtTypeDeclaration:
    """Declare an extension type; applied together with function declarations."""
    declaration = ExtTypeDeclaration(
        serial=next(_SERIAL), cls=cls, vtable=vtable, override=override
    )
    _add_declaration(declaration)
    return declaration


def pending_declarations(registry: Registry | None = None) -> list[_Applicable]:
    """Declarations not yet applied to ``registry``."""
    if registry is None:
        registry = global_registry()
    with _DECLARATIONS_LOCK:
        return list(_DECLARATIONS[_APPLIED.get(registry, 0):])


def load_registration_module(path: str | Path) -> ModuleType:
    """Import a Python file so its declarations are collected."""
    resolved = Path(path).resolve()
    cached = _LOADED_MODULES.get(resolved)
    if cached is not None:
        return cached
    module_name = (
        f"_packed_registry_{resolved.stem}_{hash(str(resolved)) & 0xFFFFFFFF:08x}"
    )
    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {resolved}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    _LOADED_MODULES[resolved] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        _LOADED_MODULES.pop(resolved, None)
        sys.modules.pop(spec.name, None)
        raise
    logger.debug("Loaded registration module %s", resolved)
    return module


def ensure_initialized(registry: Registry | None = None) -> int:
    """Apply every declaration not yet applied to ``registry``.

    Loads the start-up modules named in the registry's config first.
    Returns the number of declarations applied by this call.
    """
    if registry is None:
        registry = global_registry()
    for path in registry.config.startup_module_paths():
        load_registration_module(path)

    applied = 0
    with _DECLARATIONS_LOCK:
        start = _APPLIED.get(registry, 0)
        for offset, declaration in enumerate(_DECLARATIONS[start:], start=1):
            declaration.apply(registry)
            _APPLIED[registry] = start + offset
            applied += 1
            logger.debug("Applied declaration #%d: %r", declaration.serial, declaration)

    if applied:
        logger.info("Applied %d registration declaration(s)", applied)
    return applied
