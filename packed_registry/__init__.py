"""packed-registry: a process-wide registry of functions called by name.

Functions of any signature are adapted to one calling convention
(``PackedFunc``) and stored under a string name, so components that only
know the name can look a function up and call it.

Main entry points:
- ``Registry`` / ``global_registry()``: register, look up, remove, list
- ``register_global`` / ``register_func``: declare registrations at import time
- ``ensure_initialized``: apply declared registrations at start-up
"""
from __future__ import annotations

from .adapters import (
    SignatureInferenceError,
    as_packed,
    from_function,
    from_method,
    from_node_method,
    from_typed,
    infer_signature,
)
from .autoreg import (
    Declaration,
    ensure_initialized,
    load_registration_module,
    register_ext_type,
    register_func,
    register_global,
)
from .config import PackedRegistryConfig, load_config
from .errors import (
    DetachedEntryError,
    DuplicateExtTypeError,
    DuplicateNameError,
    IncompleteDeclarationError,
    MissingFunctionError,
    RegistryError,
)
from .ext_type import ExtTypeRegistry, ExtTypeVTable
from .handle import Handle, ObjectRef
from .packed_func import (
    ArgumentTypeMismatch,
    ArityMismatch,
    CallSignatureError,
    PackedArgs,
    PackedFunc,
    RetValue,
    ReturnTypeMismatch,
)
from .registry import (
    Registry,
    RegistryEntry,
    get_global_func,
    global_registry,
    list_global_func_names,
    register,
    remove_global_func,
)
from .typed import Signature, TypedPackedFunc

__all__ = [
    # Calling convention
    "PackedArgs",
    "PackedFunc",
    "RetValue",
    "Signature",
    "TypedPackedFunc",
    # Adapters
    "as_packed",
    "from_function",
    "from_method",
    "from_node_method",
    "from_typed",
    "infer_signature",
    "Handle",
    "ObjectRef",
    # Registry
    "Registry",
    "RegistryEntry",
    "get_global_func",
    "global_registry",
    "list_global_func_names",
    "register",
    "remove_global_func",
    # Self-registration
    "Declaration",
    "ensure_initialized",
    "load_registration_module",
    "register_ext_type",
    "register_func",
    "register_global",
    # Extension types
    "ExtTypeRegistry",
    "ExtTypeVTable",
    # Config
    "PackedRegistryConfig",
    "load_config",
    # Errors
    "ArgumentTypeMismatch",
    "ArityMismatch",
    "CallSignatureError",
    "DetachedEntryError",
    "DuplicateExtTypeError",
    "DuplicateNameError",
    "IncompleteDeclarationError",
    "MissingFunctionError",
    "RegistryError",
    "ReturnTypeMismatch",
    "SignatureInferenceError",
    # Version
    "__version__",
]

__version__ = "0.1.0"
