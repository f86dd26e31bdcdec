"""Registry-level errors, raised synchronously at registration or lookup."""
from __future__ import annotations


class RegistryError(ValueError):
    """Base class for registry errors."""
    pass


class DuplicateNameError(RegistryError):
    """Raised when a name is registered twice without override."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Global function {name!r} is already registered; "
            "pass override=True to replace it"
        )
        self.name = name


class DetachedEntryError(RegistryError):
    """Raised when attaching a body to an entry no longer held by its registry."""
    pass


class MissingFunctionError(RegistryError, LookupError):
    """Raised by strict lookups when no function is registered under a name."""
    pass


class DuplicateExtTypeError(RegistryError):
    """Raised when an extension type is registered twice without override."""
    pass


class IncompleteDeclarationError(RegistryError):
    """Raised at start-up when a declared registration never got a body."""
    pass
