"""Typed signatures over the packed calling convention.

A ``TypedPackedFunc`` pairs an explicit ``Signature`` with an implementation.
Incoming type-erased arguments are decoded into the declared parameter types
with pydantic ``TypeAdapter``s and the result is encoded with the return
type's adapter before it is written into the return slot.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, get_origin

from pydantic import ConfigDict, PydanticUserError, TypeAdapter, ValidationError

from .packed_func import (
    ArgumentTypeMismatch,
    ArityMismatch,
    PackedArgs,
    PackedFunc,
    RetValue,
    ReturnTypeMismatch,
)

# Handles and domain objects are plain classes; they validate by isinstance.
_ADAPTER_CONFIG = ConfigDict(arbitrary_types_allowed=True)


def type_name(tp: Any) -> str:
    """Readable name for a declared type, used in error messages."""
    if tp is None or tp is type(None):
        return "None"
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__name__
    return repr(tp).replace("typing.", "")


def _is_none_type(tp: Any) -> bool:
    return tp is None or tp is type(None)


def build_adapter(tp: Any) -> Optional[TypeAdapter[Any]]:
    """Return a TypeAdapter for ``tp``, or None when values pass through as-is."""
    if tp is Any:
        return None
    try:
        return TypeAdapter(tp, config=_ADAPTER_CONFIG)
    except PydanticUserError:
        # Models, pydantic dataclasses and TypedDicts carry their own config.
        return TypeAdapter(tp)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return errors[0].get("msg", str(exc))


@dataclass(frozen=True, slots=True)
class Signature:
    """Return type and ordered parameter types of a callable."""

    return_type: Any
    param_types: tuple[Any, ...] = ()
    param_names: tuple[str, ...] | None = None

    @classmethod
    def of(cls, return_type: Any, *param_types: Any) -> "Signature":
        return cls(return_type=return_type, param_types=tuple(param_types))

    @property
    def arity(self) -> int:
        return len(self.param_types)

    def describe_param(self, index: int) -> str:
        if self.param_names is not None and index < len(self.param_names):
            return f"{index} ({self.param_names[index]!r})"
        return str(index)

    def __str__(self) -> str:
        params = ", ".join(type_name(tp) for tp in self.param_types)
        return f"({params}) -> {type_name(self.return_type)}"


class TypedPackedFunc:
    """Callable with a declared signature, exposed through the packed convention.

    Adapters are built on first invocation so that constructing the wrapper
    never fails because of a declared type.
    """

    def __init__(
        self,
        signature: Signature,
        impl: Callable[..., Any],
        *,
        strict: bool = False,
        name: str | None = None,
    ) -> None:
        if not callable(impl):
            raise TypeError(f"Typed implementation must be callable, got {type(impl).__name__}")
        self.signature = signature
        self.strict = strict
        self.name = name or getattr(impl, "__qualname__", None) or type(impl).__name__
        self._impl = impl
        self._codecs: tuple[tuple[Optional[TypeAdapter[Any]], ...], Optional[TypeAdapter[Any]]] | None = None
        self._packed = PackedFunc(self._call_packed)

    def packed(self) -> PackedFunc:
        return self._packed

    def __call__(self, *args: Any) -> Any:
        return self._packed(*args)

    def __repr__(self) -> str:
        return f"TypedPackedFunc({self.name}: {self.signature})"

    def _get_codecs(self) -> tuple[tuple[Optional[TypeAdapter[Any]], ...], Optional[TypeAdapter[Any]]]:
        codecs = self._codecs
        if codecs is None:
            decoders = tuple(build_adapter(tp) for tp in self.signature.param_types)
            return_type = self.signature.return_type
            encoder = None if _is_none_type(return_type) else build_adapter(return_type)
            codecs = (decoders, encoder)
            self._codecs = codecs
        return codecs

    def decode_args(self, args: Sequence[Any]) -> list[Any]:
        signature = self.signature
        if len(args) != signature.arity:
            raise ArityMismatch(
                f"{self.name} expects {signature.arity} argument(s) {signature}, "
                f"but {len(args)} were given",
                expected=signature.arity,
                received=len(args),
            )
        decoders, _ = self._get_codecs()
        decoded: list[Any] = []
        for index, (value, decoder) in enumerate(zip(args, decoders)):
            if decoder is None:
                decoded.append(value)
                continue
            expected = signature.param_types[index]
            try:
                decoded.append(decoder.validate_python(value, strict=self.strict))
            except ValidationError as exc:
                raise ArgumentTypeMismatch(
                    f"{self.name}: argument {signature.describe_param(index)} expected "
                    f"{type_name(expected)}, got {type(value).__name__} {value!r} "
                    f"({_first_error(exc)})",
                    index=index,
                    expected=expected,
                    value=value,
                ) from exc
        return decoded

    def encode_result(self, result: Any, rv: RetValue) -> None:
        return_type = self.signature.return_type
        if _is_none_type(return_type):
            return
        _, encoder = self._get_codecs()
        if encoder is None:
            rv.set(result)
            return
        try:
            rv.set(encoder.validate_python(result, strict=self.strict))
        except ValidationError as exc:
            raise ReturnTypeMismatch(
                f"{self.name}: result expected {type_name(return_type)}, "
                f"got {type(result).__name__} {result!r} ({_first_error(exc)})"
            ) from exc

    def _call_packed(self, args: PackedArgs, rv: RetValue) -> None:
        decoded = self.decode_args(args)
        result = self._impl(*decoded)
        self.encode_result(result, rv)
