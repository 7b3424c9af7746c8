"""High level entry points for generating implementations and proxies."""

from pathlib import Path
from typing import Any, Optional, TypeVar

from masquerade.config import load_generator_config
from masquerade.generator import ClassGenerator
from masquerade.hooks import SynthesisHooks
from masquerade.proxy import ProxyBuilder, default_proxy_builder

__all__ = ["make_generator", "make_proxy_builder", "augment"]

T = TypeVar("T")


def make_generator(
    hooks: SynthesisHooks, config_path: Optional[Path] = None
) -> ClassGenerator:
    """Create a :class:`ClassGenerator`, optionally configured from a TOML file.

    Args:
        hooks: The synthesis hooks supplying generated bodies.
        config_path: A TOML file with a ``[tool.masquerade]`` table. When None,
            or when the file has no such table, defaults apply.

    Returns:
        A generator with an empty cache.

    Example:
        >>> generator = make_generator(hooks, Path("pyproject.toml"))
        >>> greeter = generator.new_instance(Greeter)
    """
    config = load_generator_config(config_path) if config_path else None
    return ClassGenerator(hooks, config)


def make_proxy_builder(config_path: Optional[Path] = None) -> ProxyBuilder:
    """Create a :class:`ProxyBuilder`, optionally configured from a TOML file."""
    config = load_generator_config(config_path) if config_path else None
    return ProxyBuilder(config)


def augment(contract: type[T], handler: Any) -> T:
    """Bind ``handler`` to ``contract`` using the process-wide proxy builder.

    Raises:
        InvalidContractError: If ``contract`` is not an interface.
    """
    return default_proxy_builder().augment(contract, handler)
