"""Introspection utilities turning live classes into contract descriptors."""

import array
import inspect
import logging
from abc import ABC, ABCMeta
from typing import Any, Callable, Generic, Protocol, get_origin, get_type_hints

from masquerade.domain import (
    ConstructorDescriptor,
    ContractKind,
    MethodDescriptor,
    TypeDescriptor,
    Visibility,
)
from masquerade.errors import InvalidContractError

__all__ = ["describe", "is_interface", "qualified_name", "raises"]

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = frozenset({bool, int, float, complex, str, bytes, type(None)})
ARRAY_TYPES = frozenset({list, tuple, bytearray, memoryview, array.array})

_INTERFACE_ROOTS = (object, ABC, Generic, Protocol)
_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def raises(*exception_types: type) -> Callable:
    """Declare the exceptions a contract method may raise.

    The declaration is recorded on the function and surfaces as
    :attr:`MethodDescriptor.exceptions`.

    Example:
        >>> class Repository(ABC):
        ...     @abstractmethod
        ...     @raises(KeyError)
        ...     def find(self, key: str) -> dict: ...
    """

    def decorator(func: Callable) -> Callable:
        func.__raises__ = tuple(exception_types)
        return func

    return decorator


def qualified_name(target: Any) -> str:
    """Return ``module.qualname`` for a class, or its repr for anything else."""
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None)
    if module is None or qualname is None or not inspect.isclass(target):
        return repr(target)
    return f"{module}.{qualname}"


def is_interface(target: Any) -> bool:
    """Check whether a class is an interface.

    Protocol classes are always interfaces. Otherwise a class is an interface
    when it is abstract (``ABCMeta``), declares no ``__init__``, and only
    extends other interfaces, ``ABC``, ``Generic`` or ``object``.

    Example:
        >>> class Shape(ABC):
        ...     @abstractmethod
        ...     def area(self) -> float: ...
        >>> is_interface(Shape)   # True
        >>> is_interface(object)  # False
    """
    if not inspect.isclass(target):
        return False
    if _is_protocol(target):
        return True
    if not isinstance(target, ABCMeta) or "__init__" in vars(target):
        return False
    return all(
        base in _INTERFACE_ROOTS or is_interface(base) for base in target.__bases__
    )


def describe(target: Any) -> TypeDescriptor:
    """Build a :class:`TypeDescriptor` for a class.

    Primitive and array types are described (so callers can reject them with a
    meaningful error) but carry no members.

    Args:
        target: A class, a parameterised array alias such as ``list[int]``, or an
            existing descriptor (returned unchanged).

    Returns:
        The descriptor of the target.

    Raises:
        InvalidContractError: If the target is not a class, or an abstract method
            has parameters that cannot be forwarded positionally.
    """
    if isinstance(target, TypeDescriptor):
        return target

    if get_origin(target) in ARRAY_TYPES:
        return TypeDescriptor(target, repr(target), ContractKind.ARRAY)
    if not inspect.isclass(target):
        raise InvalidContractError(f"{target!r} is not a class")
    if target in PRIMITIVE_TYPES:
        return TypeDescriptor(target, qualified_name(target), ContractKind.PRIMITIVE)
    if target in ARRAY_TYPES:
        return TypeDescriptor(target, qualified_name(target), ContractKind.ARRAY)

    if is_interface(target):
        kind, constructors = ContractKind.INTERFACE, ()
    else:
        kind, constructors = ContractKind.CLASS, (_constructor(target),)

    return TypeDescriptor(
        target,
        qualified_name(target),
        kind,
        constructors,
        tuple(_declared_methods(target)),
    )


def _declared_methods(cls: type) -> list[MethodDescriptor]:
    """Describe the plain functions declared in the body of ``cls``.

    Functions attached from elsewhere (for instance the hooks ``typing`` adds
    to protocol classes) are skipped, as is ``__init__``.
    """
    prefix = cls.__qualname__ + "."
    return [
        _describe_method(cls, name, func)
        for name, func in vars(cls).items()
        if inspect.isfunction(func)
        and name != "__init__"
        and func.__qualname__.startswith(prefix)
    ]


def _describe_method(cls: type, name: str, func: Callable) -> MethodDescriptor:
    is_abstract = getattr(func, "__isabstractmethod__", False) or (
        _is_protocol(cls) and _is_stub(func)
    )
    hints = _type_hints(func)
    parameters = list(inspect.signature(func).parameters.values())[1:]

    parameter_types = []
    defaults = []
    varargs = False
    for parameter in parameters:
        if parameter.kind in _POSITIONAL:
            parameter_types.append(hints.get(parameter.name, inspect.Parameter.empty))
            if parameter.default is not inspect.Parameter.empty:
                defaults.append(parameter.default)
        elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            parameter_types.append(hints.get(parameter.name, inspect.Parameter.empty))
            varargs = True
        elif is_abstract:
            raise InvalidContractError(
                f"Parameter <{parameter.name}> of {qualified_name(cls)}.{name} "
                "cannot be forwarded positionally"
            )

    return MethodDescriptor(
        name,
        hints.get("return", inspect.Signature.empty),
        tuple(parameter_types),
        getattr(func, "__raises__", ()),
        _visibility(cls, name),
        is_abstract,
        varargs,
        tuple(defaults),
        cls,
        func,
    )


def _stub(self): ...


def _is_stub(func: Callable) -> bool:
    """Whether a function body is only a docstring, ``...`` or ``pass``."""
    return func.__code__.co_code == _stub.__code__.co_code


def _is_protocol(cls: type) -> bool:
    return bool(cls.__dict__.get("_is_protocol", False))


def _constructor(cls: type) -> ConstructorDescriptor:
    init = cls.__init__
    if init is object.__init__:
        return ConstructorDescriptor((), ())

    hints = _type_hints(init)
    parameters = list(inspect.signature(init).parameters.values())[1:]
    return ConstructorDescriptor(
        tuple(p.name for p in parameters),
        tuple(hints.get(p.name, inspect.Parameter.empty) for p in parameters),
    )


def _visibility(cls: type, name: str) -> Visibility:
    """Derive visibility from a naming convention.

    Example:
        >>> _visibility(Foo, "run")          # PUBLIC
        >>> _visibility(Foo, "__len__")      # PUBLIC
        >>> _visibility(Foo, "_step")        # PROTECTED
        >>> _visibility(Foo, "_Foo__secret") # PACKAGE
    """
    if name.startswith(f"_{cls.__name__.lstrip('_')}__"):
        return Visibility.PACKAGE
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _type_hints(func: Callable) -> dict[str, Any]:
    try:
        return get_type_hints(func)
    except (NameError, TypeError) as e:
        # Unresolvable forward references keep their string form.
        logger.debug("Using raw annotations for %s: %s", func.__qualname__, e)
        return dict(getattr(func, "__annotations__", {}))
