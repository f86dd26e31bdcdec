"""Uniform calling convention for registered functions.

Every registered body is a ``PackedFunc``: it receives its positional
arguments as a ``PackedArgs`` sequence and writes its result into a
``RetValue`` slot. Callers never need to know the concrete signature of the
function behind a name.
"""
from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence, TypeAlias


class CallSignatureError(TypeError):
    """Raised at call time when arguments or results do not fit a signature."""
    pass


class ArgumentTypeMismatch(CallSignatureError):
    """Raised when an argument cannot be decoded into its declared type."""

    def __init__(
        self,
        message: str,
        *,
        index: int | None = None,
        expected: Any = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.index = index
        self.expected = expected
        self.value = value


class ArityMismatch(ArgumentTypeMismatch):
    """Raised when a call supplies the wrong number of arguments."""

    def __init__(self, message: str, *, expected: int, received: int) -> None:
        super().__init__(message, expected=expected)
        self.received = received


class ReturnTypeMismatch(CallSignatureError):
    """Raised when a result cannot be encoded as the declared return type."""
    pass


class PackedArgs(Sequence[Any]):
    """Immutable ordered sequence of type-erased call arguments."""

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[Any] = ()) -> None:
        self._values = tuple(values)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index):  # type: ignore[override]
        return self._values[index]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"PackedArgs{self._values!r}"

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values


class RetValue:
    """Writable return slot filled by a packed body."""

    __slots__ = ("_value", "_is_set")

    def __init__(self) -> None:
        self._value: Any = None
        self._is_set = False

    def set(self, value: Any) -> None:
        self._value = value
        self._is_set = True

    @property
    def value(self) -> Any:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._is_set

    def __repr__(self) -> str:
        if not self._is_set:
            return "RetValue(<unset>)"
        return f"RetValue({self._value!r})"


PackedBody: TypeAlias = Callable[[PackedArgs, RetValue], None]


class PackedFunc:
    """Type-erased callable using the packed calling convention.

    A ``PackedFunc`` without a body is falsy and cannot be invoked.
    """

    __slots__ = ("_body",)

    def __init__(self, body: PackedBody | None = None) -> None:
        if body is not None and not callable(body):
            raise TypeError(f"PackedFunc body must be callable, got {type(body).__name__}")
        self._body = body

    @property
    def body(self) -> PackedBody | None:
        return self._body

    def call_packed(self, args: PackedArgs, rv: RetValue) -> None:
        if self._body is None:
            raise TypeError("Cannot call an empty PackedFunc")
        self._body(args, rv)

    def __call__(self, *args: Any) -> Any:
        rv = RetValue()
        self.call_packed(PackedArgs(args), rv)
        return rv.value

    def __bool__(self) -> bool:
        return self._body is not None

    def __repr__(self) -> str:
        if self._body is None:
            return "PackedFunc(<empty>)"
        name = getattr(self._body, "__qualname__", type(self._body).__name__)
        return f"PackedFunc({name})"
