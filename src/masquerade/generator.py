"""The class generation engine.

A :class:`ClassGenerator` turns a contract (an interface or a class) into a
loaded implementation class, using a :class:`~masquerade.hooks.SynthesisHooks`
object for the contract-specific parts. Each contract goes through the
pipeline once per generator:

    synthesize source -> write to a temporary directory -> byte-compile ->
    load -> remove the temporary directory -> cache

The resulting :class:`~masquerade.domain.GeneratedArtifact` is reused for every
later request of the same contract. Failed generations are never cached.
"""

import logging
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from masquerade.cache import ArtifactCache
from masquerade.casting import PRELUDE
from masquerade.config import GeneratorConfig
from masquerade.domain import GeneratedArtifact, TypeDescriptor
from masquerade.errors import CompilationError, InstantiationError, InvalidContractError
from masquerade.hooks import SynthesisHooks
from masquerade.introspect import describe
from masquerade.source import SourceUnit, SourceWriter
from masquerade.toolchain import Compiler, Loader, ModuleLoader, PyCompiler

__all__ = ["ClassGenerator", "Contract"]

logger = logging.getLogger(__name__)

Contract = Union[type, TypeDescriptor]
"""A contract is given either as a class or as its descriptor."""


class ClassGenerator:
    """Generate, cache and instantiate implementations of contracts.

    A generator is meant to be owned by one component; its cache lives as long
    as the generator does and is never evicted.

    Example:
        >>> class Greeter(ABC):
        ...     @abstractmethod
        ...     def greet(self, name: str) -> str: ...
        >>>
        >>> generator = ClassGenerator(
        ...     make_hooks(method_body=lambda contract, method: 'return "Hello " + par0')
        ... )
        >>> generator.new_instance(Greeter).greet("World")  # "Hello World"
    """

    def __init__(
        self,
        hooks: SynthesisHooks,
        config: Optional[GeneratorConfig] = None,
        compiler: Optional[Compiler] = None,
        loader: Optional[Loader] = None,
    ):
        self._config = config or GeneratorConfig()
        self._writer = SourceWriter(hooks, self._config.class_suffix)
        self._compiler = compiler or PyCompiler(self._config.optimize)
        self._loader = loader or ModuleLoader()
        self._cache = ArtifactCache()

    def resolve(self, contract: Contract) -> GeneratedArtifact:
        """Return the implementation of ``contract``, generating it on first request.

        Args:
            contract: The class or descriptor to implement.

        Returns:
            The cached or freshly generated artifact.

        Raises:
            InvalidContractError: If the contract is not a class, or is a primitive
                or array type.
            InvalidHierarchyError: If the hooks nominate an invalid superclass or
                interface.
            CompilationError: If the synthesized source does not compile.
            LoadError: If the compiled module cannot be loaded.
        """
        descriptor = _valid_contract(contract)
        artifact = self._cache.get(descriptor)
        if artifact is not None:
            logger.debug("Reusing %s for %s", artifact.qualified_name, descriptor.qualified_name)
            return artifact
        return self._cache.get_or_create(descriptor, lambda: self._generate(descriptor))

    def new_instance(self, contract: Contract) -> Any:
        """Instantiate the implementation of ``contract`` with no arguments.

        Raises:
            InstantiationError: If the generated class cannot be constructed.
            GenerationError: Any error raised by :meth:`resolve`.
        """
        artifact = self.resolve(contract)
        try:
            return artifact.implementation()
        except Exception as e:
            raise InstantiationError(
                f"Could not instantiate {artifact.qualified_name}: {e}"
            ) from e

    def synthesize(self, contract: Contract) -> SourceUnit:
        """Synthesize the source of an implementation without compiling or caching it."""
        return self._writer.write(_valid_contract(contract))

    def is_resolved(self, contract: Contract) -> bool:
        return describe(contract) in self._cache

    def _generate(self, contract: TypeDescriptor) -> GeneratedArtifact:
        unit = self._writer.write(contract)
        if self._config.log_source:
            logger.debug("Synthesized %s:\n%s", unit.class_name, unit.text)

        work_dir = self._config.work_dir
        if work_dir is not None:
            work_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="rtc", dir=work_dir) as directory:
            directory = Path(directory)
            source = directory / f"{unit.class_name}.py"
            source.write_text(unit.text, encoding="utf-8")

            result = self._compiler.compile(source, directory / f"{unit.class_name}.pyc")
            if not result.success:
                logger.warning(
                    "Compilation of %s failed: %s", contract.qualified_name, result.diagnostics
                )
                raise CompilationError(
                    f"Could not compile implementation of {contract.qualified_name}: "
                    f"{result.diagnostics}"
                )

            qualified_name = f"{self._config.module_prefix}.{directory.name}.{unit.class_name}"
            implementation = self._loader.load(
                result.output, qualified_name, {**PRELUDE, **unit.symbols}
            )

        logger.info("Generated %s for %s", qualified_name, contract.qualified_name)
        return GeneratedArtifact(contract, implementation, qualified_name)


def _valid_contract(contract: Contract) -> TypeDescriptor:
    descriptor = describe(contract)
    if descriptor.is_primitive:
        raise InvalidContractError(
            f"Could not generate an implementation of primitive {descriptor.qualified_name}"
        )
    if descriptor.is_array:
        raise InvalidContractError(
            f"Could not generate an implementation of array {descriptor.qualified_name}"
        )
    return descriptor
