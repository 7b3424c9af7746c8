"""Runtime result casting for generated method bodies.

Generated modules are executed with :data:`PRELUDE` pre-bound, so any hook
body may call ``checked_cast`` the way hand-written code would cast a value
to a declared return type.
"""

import inspect
import types
from typing import Any, Union, get_args, get_origin

from masquerade.domain import MethodDescriptor
from masquerade.errors import InvalidResultTypeError

__all__ = ["checked_cast", "PRELUDE"]

# PEP 484 numeric promotions: an int is acceptable where a float is declared.
_PROMOTIONS = {
    float: (int,),
    complex: (int, float),
}


def checked_cast(value: Any, method: MethodDescriptor) -> Any:
    """Return ``value`` if it satisfies the declared return type of ``method``.

    Only runtime-checkable annotations are enforced: classes, parameterised
    generics (checked against their origin), unions and ``Optional``. Anything
    else, including a missing annotation, passes the value through.

    Raises:
        InvalidResultTypeError: If the value does not match the return type.
    """
    expected = method.return_type
    if expected is inspect.Signature.empty or _is_instance(value, expected):
        return value
    raise InvalidResultTypeError(
        f"{method.name} returned {type(value).__qualname__}, expected {_describe(expected)}"
    )


def _is_instance(value: Any, expected: Any) -> bool:
    if expected is None or expected is type(None):
        return value is None
    if expected is Any:
        return True

    origin = get_origin(expected)
    if origin is Union or origin is types.UnionType:
        return any(_is_instance(value, arg) for arg in get_args(expected))
    if origin is not None:
        expected = origin

    if not inspect.isclass(expected) or _is_static_protocol(expected):
        return True
    if isinstance(value, bool) and expected in _PROMOTIONS:
        return False
    if isinstance(value, expected):
        return True
    return isinstance(value, _PROMOTIONS.get(expected, ()))


def _is_static_protocol(expected: type) -> bool:
    return getattr(expected, "_is_protocol", False) and not getattr(
        expected, "_is_runtime_protocol", False
    )


def _describe(expected: Any) -> str:
    return expected.__qualname__ if inspect.isclass(expected) else repr(expected)


PRELUDE = {"checked_cast": checked_cast}
"""Names bound in every generated module before its code runs."""
