"""Adapters turning native Python callables into packed functions.

Five shapes are supported:

- pass-through: a ``PackedFunc`` (or a raw ``(args, rv)`` body) as-is
- typed-signature: an explicit ``Signature`` plus an implementation
- function: a plain annotated function; its signature is inferred
- method: a method or property of a class, called on a decoded instance
- node method: a method of a base class, called through a handle type

Everything except pass-through reduces to ``TypedPackedFunc``. Adaptation
only binds types; decoding errors surface when the function is called.
"""
from __future__ import annotations

import functools
import inspect
import sys
from typing import Any, Callable, get_type_hints

from .handle import Handle
from .packed_func import ArgumentTypeMismatch, PackedFunc
from .typed import Signature, TypedPackedFunc, type_name

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class SignatureInferenceError(TypeError):
    """Raised when a callable's signature cannot be inferred from annotations."""
    pass


def as_packed(f: Any) -> PackedFunc:
    """Accept a callable already shaped for the packed convention."""
    if isinstance(f, PackedFunc):
        return f
    if isinstance(f, TypedPackedFunc):
        return f.packed()
    if not callable(f):
        raise TypeError(f"Expected a packed function or (args, rv) body, got {type(f).__name__}")
    return PackedFunc(f)


def from_typed(
    signature: Signature,
    impl: Callable[..., Any],
    *,
    strict: bool = False,
    name: str | None = None,
) -> PackedFunc:
    return TypedPackedFunc(signature, impl, strict=strict, name=name).packed()


def infer_signature(func: Any, *, bound: bool = False) -> Signature:
    """Infer a ``Signature`` from a plain function's annotations.

    Only named ``def`` functions qualify. Lambdas, partials and callable
    objects need an explicit signature. With ``bound=True`` the first
    parameter (``self``) is left out.
    """
    if isinstance(func, functools.partial):
        raise SignatureInferenceError(
            "Cannot infer the signature of a functools.partial; pass an explicit Signature"
        )
    if not inspect.isfunction(func):
        raise SignatureInferenceError(
            f"Cannot infer the signature of {type(func).__name__} object {func!r}; "
            "only plain functions are supported, pass an explicit Signature"
        )
    if func.__name__ == "<lambda>":
        raise SignatureInferenceError(
            "Cannot infer the signature of a lambda; pass an explicit Signature"
        )

    try:
        hints = get_type_hints(func)
    except (NameError, TypeError) as exc:
        raise SignatureInferenceError(
            f"Cannot resolve annotations of {func.__qualname__}: {exc}"
        ) from exc

    params = list(inspect.signature(func).parameters.values())
    if bound:
        if not params:
            raise SignatureInferenceError(f"{func.__qualname__} takes no instance parameter")
        params = params[1:]

    types: list[Any] = []
    names: list[str] = []
    for param in params:
        if param.kind not in _POSITIONAL_KINDS:
            raise SignatureInferenceError(
                f"{func.__qualname__}: parameter {param.name!r} is {param.kind.description}; "
                "only positional parameters can be packed"
            )
        if param.name not in hints:
            raise SignatureInferenceError(
                f"{func.__qualname__}: parameter {param.name!r} has no type annotation"
            )
        types.append(hints[param.name])
        names.append(param.name)

    if "return" not in hints:
        raise SignatureInferenceError(f"{func.__qualname__}: missing return annotation")

    return Signature(
        return_type=hints["return"],
        param_types=tuple(types),
        param_names=tuple(names),
    )


def from_function(func: Callable[..., Any], *, strict: bool = False) -> PackedFunc:
    signature = infer_signature(func)
    return from_typed(signature, func, strict=strict, name=func.__qualname__)


def _member_function(member: Any) -> Callable[..., Any]:
    if isinstance(member, property):
        if member.fget is None:
            raise SignatureInferenceError("Cannot adapt a property without a getter")
        return member.fget
    if inspect.ismethod(member):
        raise SignatureInferenceError(
            f"{member.__qualname__} is already bound; pass the function from the class "
            "(e.g. Shape.area) instead"
        )
    if not inspect.isfunction(member):
        raise SignatureInferenceError(
            f"Expected a method or property, got {type(member).__name__}"
        )
    return member


def resolve_owner(func: Callable[..., Any]) -> type:
    """Find the class a method was defined on from its qualified name."""
    qualname = func.__qualname__
    if "<locals>" in qualname:
        raise SignatureInferenceError(
            f"{qualname} is defined in a local scope; pass the owning class explicitly"
        )
    path = qualname.split(".")[:-1]
    if not path:
        raise SignatureInferenceError(f"{qualname} is not defined on a class")
    obj: Any = sys.modules.get(func.__module__)
    for part in path:
        obj = getattr(obj, part, None)
    if not isinstance(obj, type):
        raise SignatureInferenceError(
            f"Cannot resolve the class of {qualname}; pass the owning class explicitly"
        )
    return obj


def _member_name(owner: type, member: Any, func: Callable[..., Any]) -> str:
    for klass in owner.__mro__:
        for name, value in vars(klass).items():
            if value is member:
                return name
            if isinstance(value, (staticmethod, classmethod)) and value.__func__ is func:
                raise SignatureInferenceError(
                    f"{klass.__name__}.{name} is a {type(value).__name__}; "
                    "register it as a plain function instead"
                )
    return func.__name__


def _member_signature(member: Any, owner: type | None) -> tuple[type, str, Signature, bool]:
    func = _member_function(member)
    if owner is None:
        owner = resolve_owner(func)
    name = _member_name(owner, member, func)
    signature = infer_signature(func, bound=True)
    is_property = isinstance(member, property)
    return owner, name, signature, is_property


def _apply_member(target: Any, name: str, is_property: bool, params: tuple[Any, ...]) -> Any:
    # Looked up by name on the instance so subclass overrides run.
    attr = getattr(target, name)
    if is_property:
        return attr
    return attr(*params)


def from_method(
    method: Any,
    owner: type | None = None,
    *,
    strict: bool = False,
) -> PackedFunc:
    """Adapt a method so the target instance is the first packed argument."""
    owner, name, signature, is_property = _member_signature(method, owner)

    def invoke(target: Any, *params: Any) -> Any:
        return _apply_member(target, name, is_property, params)

    typed = Signature(
        return_type=signature.return_type,
        param_types=(owner, *signature.param_types),
        param_names=("self", *(signature.param_names or ())),
    )
    return from_typed(typed, invoke, strict=strict, name=f"{owner.__name__}.{name}")


def from_node_method(
    ref_type: type,
    method: Any,
    node_type: type | None = None,
    *,
    strict: bool = False,
) -> PackedFunc:
    """Adapt a base-class method so it is called through a handle of ``ref_type``.

    The handle is dereferenced at call time and the method is dispatched on
    whatever object it points at, which must be an instance of ``node_type``.
    """
    if not isinstance(ref_type, type) or not issubclass(ref_type, Handle):
        raise TypeError(f"Handle type must define deref(), got {ref_type!r}")
    node_type, name, signature, is_property = _member_signature(method, node_type)
    label = f"{ref_type.__name__}->{node_type.__name__}.{name}"

    def invoke(ref: Any, *params: Any) -> Any:
        target = ref.deref()
        if target is None:
            raise ArgumentTypeMismatch(
                f"{label}: argument 0 is a null {ref_type.__name__}",
                index=0,
                expected=node_type,
                value=ref,
            )
        if not isinstance(target, node_type):
            raise ArgumentTypeMismatch(
                f"{label}: {ref_type.__name__} refers to {type(target).__name__}, "
                f"expected {type_name(node_type)}",
                index=0,
                expected=node_type,
                value=ref,
            )
        return _apply_member(target, name, is_property, params)

    typed = Signature(
        return_type=signature.return_type,
        param_types=(ref_type, *signature.param_types),
        param_names=("ref", *(signature.param_names or ())),
    )
    return from_typed(typed, invoke, strict=strict, name=label)
