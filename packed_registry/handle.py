"""Handle types: lightweight references that dereference to a base object."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Handle(Protocol):
    """Reference value that resolves to the object it points at.

    ``deref()`` returns the referenced object, or ``None`` for a null handle.
    """

    def deref(self) -> Any:
        ...


class ObjectRef:
    """Base handle holding a reference to an underlying object.

    Subclass it per object family (``ShapeRef`` for ``Shape`` objects, ...)
    so typed signatures can tell handle kinds apart. Equality and hashing
    follow the identity of the referenced object.
    """

    __slots__ = ("_obj",)

    def __init__(self, obj: Any = None) -> None:
        self._obj = obj

    def deref(self) -> Any:
        return self._obj

    @property
    def defined(self) -> bool:
        return self._obj is not None

    def same_as(self, other: "ObjectRef") -> bool:
        return self._obj is other._obj

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObjectRef):
            return self._obj is other._obj
        return NotImplemented

    def __hash__(self) -> int:
        return id(self._obj)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._obj!r})"
