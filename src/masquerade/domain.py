"""Domain models used throughout the framework."""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

__all__ = [
    "ContractKind",
    "Visibility",
    "MethodDescriptor",
    "ConstructorDescriptor",
    "TypeDescriptor",
    "GeneratedArtifact",
]

NoneType = type(None)


class ContractKind(Enum):
    """The shape of a type handed to the generator."""

    INTERFACE = "interface"
    CLASS = "class"
    PRIMITIVE = "primitive"
    ARRAY = "array"


class Visibility(Enum):
    """Visibility of a member, derived from its naming convention.

    Public names carry no leading underscore (or are dunders), protected names
    carry one, and package-private names are the mangled ``__name`` form.
    """

    PUBLIC = "public"
    PROTECTED = "protected"
    PACKAGE = "package"


@dataclass(frozen=True)
class MethodDescriptor:
    """Describes a method declared directly on a contract.

    Descriptors drive source synthesis and, for delegating proxies, are handed
    back to the call handler so it can tell which method was invoked.

    Attributes:
        name: The attribute name of the method (mangled for ``__private`` names).
        return_type: The return annotation. ``NoneType`` denotes a void method and
            ``inspect.Signature.empty`` an unannotated one.
        parameter_types: Annotations of the positional parameters, in order,
            excluding ``self``. Unannotated parameters hold ``inspect.Parameter.empty``.
        exceptions: Exception types declared with :func:`masquerade.introspect.raises`.
        visibility: Visibility derived from the method name.
        is_abstract: Whether the method has no implementation on the contract.
        varargs: Whether the last positional parameter collects ``*args``.
        defaults: Default values of the trailing positional parameters.
        declaring_type: The class declaring the method.
        function: The underlying function object.

    Example:
        >>> class Greeter(ABC):
        ...     @abstractmethod
        ...     def greet(self, name: str) -> str: ...
        >>>
        >>> describe(Greeter).methods[0]
        >>> # MethodDescriptor(name="greet", return_type=str, parameter_types=(str,), ...)
    """

    name: str
    return_type: Any
    parameter_types: tuple[Any, ...]
    exceptions: tuple[type, ...] = ()
    visibility: Visibility = Visibility.PUBLIC
    is_abstract: bool = False
    varargs: bool = False
    defaults: tuple[Any, ...] = field(default=(), compare=False)
    declaring_type: Optional[type] = None
    function: Optional[Callable] = field(default=None, compare=False, repr=False)

    @property
    def is_void(self) -> bool:
        return self.return_type is NoneType or self.return_type is None

    @property
    def is_annotated(self) -> bool:
        return self.return_type is not inspect.Signature.empty

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_types)


@dataclass(frozen=True)
class ConstructorDescriptor:
    """Describes the effective ``__init__`` of a class contract.

    Attributes:
        parameter_names: Names of the parameters, excluding ``self``.
        parameter_types: Annotations of the parameters, in order.
        visibility: Always public for ``__init__``; kept for symmetry with methods.
    """

    parameter_names: tuple[str, ...]
    parameter_types: tuple[Any, ...]
    visibility: Visibility = Visibility.PUBLIC


@dataclass(frozen=True)
class TypeDescriptor:
    """Identity and shape of a type contract.

    Two descriptors are equal when they describe the same runtime type, which
    makes them suitable cache keys.

    Attributes:
        contract: The runtime class (or parameterised alias, for array kinds).
        qualified_name: ``module.qualname`` of the contract.
        kind: Whether the contract is an interface, a class, a primitive or an array.
        constructors: Constructors of a class contract; empty for interfaces.
        methods: Methods declared directly on the contract, in definition order.
    """

    contract: Any
    qualified_name: str
    kind: ContractKind
    constructors: tuple[ConstructorDescriptor, ...] = field(default=(), compare=False)
    methods: tuple[MethodDescriptor, ...] = field(default=(), compare=False)

    @property
    def name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def is_interface(self) -> bool:
        return self.kind is ContractKind.INTERFACE

    @property
    def is_primitive(self) -> bool:
        return self.kind is ContractKind.PRIMITIVE

    @property
    def is_array(self) -> bool:
        return self.kind is ContractKind.ARRAY

    @property
    def abstract_methods(self) -> tuple[MethodDescriptor, ...]:
        return tuple(m for m in self.methods if m.is_abstract)


@dataclass(frozen=True)
class GeneratedArtifact:
    """A loaded, ready-to-instantiate implementation of a contract.

    Attributes:
        contract: The descriptor of the contract the implementation satisfies.
        implementation: The generated class.
        qualified_name: ``module.ClassName`` the class was loaded under.
    """

    contract: TypeDescriptor
    implementation: type
    qualified_name: str
