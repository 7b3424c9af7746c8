"""Synthesis hooks supplying the caller-specific pieces of generated classes.

A :class:`~masquerade.generator.ClassGenerator` owns the mechanics of
assembling, compiling and loading an implementation; a hooks object decides
what goes inside it. Every hook may return ``None`` (or an empty result),
meaning "contribute nothing".
"""

from typing import Callable, Iterable, Optional

from masquerade.domain import ConstructorDescriptor, MethodDescriptor, TypeDescriptor

__all__ = ["SynthesisHooks", "make_hooks"]


class SynthesisHooks:
    """Base class for generator hooks. Override the hooks you need."""

    def imports(self, contract: TypeDescriptor) -> Optional[Iterable[str]]:
        """Modules to import at the top of the generated module.

        Each entry becomes ``import <entry>``, unless it already reads as an
        import statement (``from x import y``), in which case it is emitted as is.
        Names the imports bind are never reused for the contract or the
        annotations the generated code refers to.
        """
        return None

    def superclass(self, contract: TypeDescriptor) -> Optional[type]:
        """Class the implementation of an interface contract extends.

        Only consulted for interface contracts; class contracts are always
        extended directly. ``None`` means ``object``.
        """
        return None

    def interfaces(self, contract: TypeDescriptor) -> Optional[Iterable[type]]:
        """Additional interfaces the implementation declares.

        An interface contract is always implemented, and appears once even if
        it is returned here too.
        """
        return None

    def class_body(self, contract: TypeDescriptor) -> Optional[str]:
        """Free-form class body source: fields, helper methods, nested classes."""
        return None

    def constructor_body(
        self,
        contract: TypeDescriptor,
        constructors: tuple[ConstructorDescriptor, ...],
    ) -> Optional[str]:
        """Body of a generated ``__init__(self)``.

        Returning ``None`` or an empty fragment omits the constructor, so the
        inherited one applies. When the superclass constructor can be called
        without arguments, ``super().__init__()`` runs before the fragment;
        otherwise the fragment must call it with the arguments it needs.
        """
        return None

    def method_body(
        self, contract: TypeDescriptor, method: MethodDescriptor
    ) -> Optional[str]:
        """Body of an abstract method declared on the contract.

        On a ``Protocol`` contract, member functions whose body is only a
        docstring, ``...`` or ``pass`` count as abstract.

        The signature is generated: ``def <name>(self, par0, par1, ...)``, with
        the original annotations.
        """
        return None


class _FunctionHooks(SynthesisHooks):
    """Hooks backed by plain functions, as built by :func:`make_hooks`."""

    def __init__(self, functions: dict[str, Callable]):
        self._functions = functions

    def _call(self, hook: str, *args):
        function = self._functions.get(hook)
        return function(*args) if function else None

    def imports(self, contract):
        return self._call("imports", contract)

    def superclass(self, contract):
        return self._call("superclass", contract)

    def interfaces(self, contract):
        return self._call("interfaces", contract)

    def class_body(self, contract):
        return self._call("class_body", contract)

    def constructor_body(self, contract, constructors):
        return self._call("constructor_body", contract, constructors)

    def method_body(self, contract, method):
        return self._call("method_body", contract, method)


_HOOK_NAMES = frozenset(
    {"imports", "superclass", "interfaces", "class_body", "constructor_body", "method_body"}
)


def make_hooks(**functions: Callable) -> SynthesisHooks:
    """Build hooks from plain functions named after the hooks they supply.

    Args:
        **functions: Any of ``imports``, ``superclass``, ``interfaces``,
            ``class_body``, ``constructor_body`` and ``method_body``.

    Returns:
        A :class:`SynthesisHooks` delegating to the given functions.

    Raises:
        TypeError: If a keyword does not name a hook.

    Example:
        >>> hooks = make_hooks(method_body=lambda contract, method: 'return "Hello " + par0')
    """
    unknown = functions.keys() - _HOOK_NAMES
    if unknown:
        raise TypeError(f"Unknown synthesis hooks {sorted(unknown)}")
    return _FunctionHooks(functions)
