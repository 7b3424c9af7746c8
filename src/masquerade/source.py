"""Source synthesis for generated implementations.

This module assembles the text of one generated class from a contract
descriptor and a :class:`~masquerade.hooks.SynthesisHooks` object. It does not
compile or load anything; the result is a :class:`SourceUnit` that the
generator hands to the toolchain.

Generated source never spells out import paths for the contract, its
superclass or the annotations it mentions: those objects may be local to a
function and impossible to import. Instead each one is bound under a
deterministic name in the unit's symbol table, and the loader injects the
table into the module namespace before running it.

Example output for an interface ``Greeter`` with one abstract method::

    class GreeterImpl(Greeter):

        def greet(self, par0: str) -> str:
            return "Hello " + par0
"""

import ast
import builtins
import inspect
import math
import re
import textwrap
from dataclasses import dataclass
from typing import Any, Iterable

from masquerade.casting import PRELUDE
from masquerade.domain import MethodDescriptor, TypeDescriptor
from masquerade.errors import InvalidHierarchyError
from masquerade.hooks import SynthesisHooks
from masquerade.introspect import is_interface, qualified_name

__all__ = ["SourceUnit", "SourceWriter", "SymbolTable"]

INDENT = "    "

_LITERAL_TYPES = (type(None), bool, int, float, str, bytes)


@dataclass(frozen=True)
class SourceUnit:
    """The synthesized source of one generated class.

    Attributes:
        class_name: Name of the generated class within its module.
        text: Complete module source.
        symbols: Runtime objects the source refers to, keyed by the names it uses.
    """

    class_name: str
    text: str
    symbols: dict[str, Any]


class SymbolTable:
    """Assigns stable names to runtime objects referenced from generated source.

    Builtins render under their own names. Classes are bound under their
    ``__name__``, suffixed when that name is taken; other objects (typing
    constructs, non-literal defaults, string annotations) get ``_ref_<n>``.
    Names are assigned in order of first reference, so the same sequence of
    references always yields the same text.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self.symbols: dict[str, Any] = {}
        self._names: dict[int, str] = {}
        self._reserved = set(reserved)

    def reference(self, obj: Any) -> str:
        if obj is None or obj is type(None):
            return "None"
        if inspect.isclass(obj) and getattr(builtins, obj.__name__, None) is obj:
            return obj.__name__

        name = self._names.get(id(obj))
        if name is None:
            base = _identifier(obj.__name__) if inspect.isclass(obj) else "_ref"
            name = self._unique(base)
            self._names[id(obj)] = name
            self.symbols[name] = obj
        return name

    def literal(self, value: Any) -> str:
        """Render a default value, inline when it has a faithful literal form."""
        if type(value) in _LITERAL_TYPES and not (
            isinstance(value, float) and not math.isfinite(value)
        ):
            return repr(value)
        return self.reference(value)

    def _unique(self, base: str) -> str:
        def taken(candidate: str) -> bool:
            return (
                candidate in self.symbols
                or candidate in self._reserved
                or hasattr(builtins, candidate)
            )

        if base != "_ref" and not taken(base):
            return base
        index = 0
        while taken(f"{base}_{index}"):
            index += 1
        return f"{base}_{index}"


class SourceWriter:
    """Render contracts into module source using a set of synthesis hooks."""

    def __init__(self, hooks: SynthesisHooks, class_suffix: str = "Impl"):
        self._hooks = hooks
        self._class_suffix = class_suffix

    def write(self, contract: TypeDescriptor) -> SourceUnit:
        """Assemble the source of an implementation of ``contract``.

        The sections appear in order: imports, class header, the hooks' class
        body, an optional ``__init__`` and one method per abstract method
        declared directly on the contract.

        Raises:
            InvalidHierarchyError: If the hooks nominate an interface as
                superclass or a non-interface as an implemented interface.
        """
        class_name = _identifier(contract.name) + self._class_suffix
        imports = self._imports(contract)
        symbols = SymbolTable(reserved={class_name, *PRELUDE, *_bound_names(imports)})

        sections = []
        if imports:
            sections.append("\n".join(imports) + "\n")

        superclass = self._superclass(contract)
        header = self._header(contract, class_name, superclass, symbols)

        members = []
        class_body = self._hooks.class_body(contract)
        if class_body:
            members.append(_indent(class_body, 1))

        constructor_body = self._hooks.constructor_body(contract, contract.constructors)
        if constructor_body:
            members.append(_constructor(superclass, constructor_body))

        for method in contract.abstract_methods:
            members.append(self._method(contract, method, symbols))

        sections.append(header + "\n" + "\n\n".join(members or [f"{INDENT}pass"]))
        return SourceUnit(class_name, "\n".join(sections) + "\n", symbols.symbols)

    def _imports(self, contract: TypeDescriptor) -> list[str]:
        return [
            entry if " import " in f" {entry}" else f"import {entry}"
            for entry in self._hooks.imports(contract) or ()
        ]

    def _header(
        self,
        contract: TypeDescriptor,
        class_name: str,
        superclass: type,
        symbols: SymbolTable,
    ) -> str:
        interfaces = self._interfaces(contract, superclass)

        bases = [symbols.reference(superclass)] if superclass is not object else []
        bases.extend(symbols.reference(interface) for interface in interfaces)
        if not bases:
            return f"class {class_name}:\n"
        return f"class {class_name}({', '.join(bases)}):\n"

    def _superclass(self, contract: TypeDescriptor) -> type:
        if not contract.is_interface:
            return contract.contract

        superclass = self._hooks.superclass(contract)
        if superclass is None:
            return object
        if not inspect.isclass(superclass) or is_interface(superclass):
            raise InvalidHierarchyError(
                f"Implementation of {contract.qualified_name} cannot extend "
                f"interface {qualified_name(superclass)}"
            )
        return superclass

    def _interfaces(self, contract: TypeDescriptor, superclass: type) -> list[type]:
        """Deduplicate and order implemented interfaces by qualified name.

        Interfaces already implied by another entry, or by the superclass, are
        dropped so that the bases always admit a consistent MRO.
        """
        interfaces: dict[int, type] = {}
        for interface in self._hooks.interfaces(contract) or ():
            if not is_interface(interface):
                raise InvalidHierarchyError(
                    f"Implementation of {contract.qualified_name} cannot implement "
                    f"non-interface {qualified_name(interface)}"
                )
            interfaces[id(interface)] = interface
        if contract.is_interface:
            interfaces[id(contract.contract)] = contract.contract

        implied = [
            interface
            for interface in interfaces.values()
            if interface in superclass.__mro__
            or any(
                other is not interface and interface in other.__mro__
                for other in interfaces.values()
            )
        ]
        return sorted(
            (i for i in interfaces.values() if i not in implied), key=qualified_name
        )

    def _method(
        self, contract: TypeDescriptor, method: MethodDescriptor, symbols: SymbolTable
    ) -> str:
        signature = ", ".join(["self", *_parameters(method, symbols)])
        returns = (
            f" -> {symbols.reference(method.return_type)}" if method.is_annotated else ""
        )
        body = self._hooks.method_body(contract, method) or "pass"
        return f"{INDENT}def {method.name}({signature}){returns}:\n{_indent(body, 2)}"


def _parameters(method: MethodDescriptor, symbols: SymbolTable) -> list[str]:
    positional = method.parameter_count - (1 if method.varargs else 0)
    first_default = positional - len(method.defaults)

    rendered = []
    for index, annotation in enumerate(method.parameter_types):
        name = f"par{index}"
        if index >= positional:
            name = "*" + name
        if annotation is not inspect.Parameter.empty:
            name = f"{name}: {symbols.reference(annotation)}"
        if first_default <= index < positional:
            default = symbols.literal(method.defaults[index - first_default])
            separator = " = " if annotation is not inspect.Parameter.empty else "="
            name = f"{name}{separator}{default}"
        rendered.append(name)
    return rendered


def _constructor(superclass: type, body: str) -> str:
    """Render ``__init__``, chaining to the superclass when it needs no arguments."""
    statements = textwrap.dedent(body).strip("\n")
    if _accepts_no_arguments(superclass):
        statements = "super().__init__()\n" + statements
    return f"{INDENT}def __init__(self):\n{_indent(statements, 2)}"


def _accepts_no_arguments(cls: type) -> bool:
    try:
        inspect.signature(cls.__init__).bind(None)
    except (TypeError, ValueError):
        return False
    return True


def _bound_names(imports: list[str]) -> set[str]:
    """Module-level names bound by import statements.

    Example:
        >>> _bound_names(["import os.path", "from json import dumps as encode"])
        >>> # {"os", "encode"}
    """
    names = set()
    for statement in imports:
        try:
            tree = ast.parse(statement)
        except SyntaxError:
            # Left for the compiler to report.
            continue
        for node in ast.walk(tree):
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                names.update(
                    alias.asname or alias.name.partition(".")[0]
                    for alias in node.names
                    if alias.name != "*"
                )
    return names


def _indent(fragment: str, level: int) -> str:
    return textwrap.indent(textwrap.dedent(fragment).strip("\n"), INDENT * level)


def _identifier(name: str) -> str:
    return re.sub(r"\W", "_", name)

