"""Exceptions raised while generating, loading and binding implementations."""

__all__ = [
    "GenerationError",
    "InvalidContractError",
    "InvalidHierarchyError",
    "CompilationError",
    "LoadError",
    "InstantiationError",
    "InvalidResultTypeError",
    "PatchingError",
]


class GenerationError(Exception):
    """Base class for every error raised by the framework."""

    pass


class InvalidContractError(GenerationError):
    """Raised when a type cannot serve as a contract (primitive, array, non-class,
    or a non-interface where an interface is required)."""

    pass


class InvalidHierarchyError(GenerationError):
    """Raised when hooks nominate an interface as superclass, or a non-interface
    as an implemented interface."""

    pass


class CompilationError(GenerationError):
    """Raised when the compiler rejects synthesized source."""

    pass


class LoadError(GenerationError):
    """Raised when compiled output cannot be executed or the generated class is missing."""

    pass


class InstantiationError(GenerationError):
    """Raised when a generated class cannot be constructed."""

    pass


class InvalidResultTypeError(GenerationError, TypeError):
    """Raised at call time when a handler result does not match the declared return type."""

    pass


class PatchingError(GenerationError):
    """Raised when an expected proxy field is missing from a generated class."""

    pass
