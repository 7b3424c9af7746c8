"""Delegating proxies: one handler object implementing any interface.

:meth:`ProxyBuilder.augment` generates an implementation of an interface
whose every abstract method forwards to ``handler.call(contract, method,
*args)``, where ``contract`` is the interface and ``method`` the
:class:`~masquerade.domain.MethodDescriptor` of the invoked method.

Construction happens in two phases. The generated class only declares its
collaborator fields (all ``None``) because the generated constructor takes no
arguments. After default construction, the builder patches the handler, the
interface and one descriptor per declared method into those fields. The
generated ``__setattr__`` rejects later assignments to them.

Example:
    >>> class Calculator(ABC):
    ...     @abstractmethod
    ...     def add(self, a: int, b: int) -> int: ...
    >>>
    >>> class Adder(CallHandler):
    ...     def call(self, contract, method, *args):
    ...         return sum(args)
    >>>
    >>> calculator = ProxyBuilder().augment(Calculator, Adder())
    >>> calculator.add(3, 4)  # 7
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

from masquerade.config import GeneratorConfig
from masquerade.domain import MethodDescriptor, TypeDescriptor
from masquerade.errors import InvalidContractError, PatchingError
from masquerade.generator import ClassGenerator
from masquerade.hooks import SynthesisHooks
from masquerade.introspect import describe
from masquerade.toolchain import Compiler, Loader

__all__ = ["CallHandler", "ProxyBuilder", "default_proxy_builder", "method_field"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

FIELD_PREFIX = "_proxy_"
HANDLER_FIELD = FIELD_PREFIX + "handler"
CONTRACT_FIELD = FIELD_PREFIX + "contract"
METHOD_FIELD_PREFIX = FIELD_PREFIX + "method_"


def method_field(method_name: str) -> str:
    """Name of the proxy field holding the descriptor of ``method_name``."""
    return METHOD_FIELD_PREFIX + method_name


class CallHandler(ABC):
    """Receives every call made on the proxies bound to it."""

    @abstractmethod
    def call(self, contract: type, method: MethodDescriptor, *args: Any) -> Any:
        """Handle a call made on a proxy.

        Args:
            contract: The interface the proxy implements.
            method: Descriptor of the invoked method.
            *args: The positional arguments of the call, in order.

        Returns:
            The result of the call. For non-void methods it must match the
            declared return type.
        """

    def augment(self, contract: type[T]) -> T:
        """Expose this handler as an implementation of ``contract``."""
        return default_proxy_builder().augment(contract, self)


class _DelegatingHooks(SynthesisHooks):
    def class_body(self, contract: TypeDescriptor) -> str:
        fields = [
            HANDLER_FIELD,
            CONTRACT_FIELD,
            *(method_field(method.name) for method in contract.methods),
        ]
        return "\n".join(
            [f"{field} = None" for field in fields]
            + [
                "",
                "def __setattr__(self, name, value):",
                f"    if name.startswith({FIELD_PREFIX!r}):",
                "        raise AttributeError(name + ' is read-only')",
                "    super().__setattr__(name, value)",
            ]
        )

    def method_body(self, contract: TypeDescriptor, method: MethodDescriptor) -> str:
        descriptor = f"self.{method_field(method.name)}"
        arguments = [f"self.{CONTRACT_FIELD}", descriptor]
        for index in range(method.parameter_count):
            last = index == method.parameter_count - 1
            arguments.append(f"*par{index}" if method.varargs and last else f"par{index}")

        call = f"self.{HANDLER_FIELD}.call({', '.join(arguments)})"
        if method.is_void:
            return call
        return f"return checked_cast({call}, {descriptor})"


class ProxyBuilder:
    """Build delegating proxies for interfaces.

    Each builder owns a private :class:`~masquerade.generator.ClassGenerator`,
    so an interface is generated once per builder regardless of how many
    handlers are bound to it.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        compiler: Optional[Compiler] = None,
        loader: Optional[Loader] = None,
    ):
        self._generator = ClassGenerator(_DelegatingHooks(), config, compiler, loader)

    def augment(self, contract: type[T], handler: Any) -> T:
        """Return an object implementing ``contract`` that forwards to ``handler``.

        Args:
            contract: The interface to implement.
            handler: A :class:`CallHandler`, or any object with a compatible
                ``call`` method.

        Returns:
            A bound proxy instance.

        Raises:
            InvalidContractError: If ``contract`` is not an interface.
            TypeError: If ``handler`` has no callable ``call`` attribute.
            PatchingError: If the generated class lacks an expected field.
        """
        descriptor = describe(contract)
        if not descriptor.is_interface:
            raise InvalidContractError(
                f"Could not augment to non-interface {descriptor.qualified_name}"
            )
        if not callable(getattr(handler, "call", None)):
            raise TypeError(f"{handler!r} has no call method")

        proxy = self._generator.new_instance(descriptor)

        _patch(proxy, HANDLER_FIELD, handler)
        _patch(proxy, CONTRACT_FIELD, descriptor.contract)
        for method in descriptor.methods:
            _patch(proxy, method_field(method.name), method)

        logger.debug("Bound %r to %s", handler, descriptor.qualified_name)
        return proxy


def _patch(proxy: Any, field: str, value: Any):
    """Assign a collaborator into a declared proxy field, bypassing the setattr guard."""
    if field not in vars(type(proxy)):
        raise PatchingError(f"{type(proxy).__qualname__} declares no field {field}")
    object.__setattr__(proxy, field, value)


_default_builder: Optional[ProxyBuilder] = None


def default_proxy_builder() -> ProxyBuilder:
    """Get or create the process-wide proxy builder."""
    global _default_builder
    if _default_builder is None:
        _default_builder = ProxyBuilder()
    return _default_builder
