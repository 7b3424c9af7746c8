"""Compiler and loader collaborators used by the class generator.

The generator writes synthesized source to a temporary file, asks a
:class:`Compiler` to byte-compile it, then asks a :class:`Loader` to execute the
compiled module and hand back the generated class. Both are small seams so
tests (or embedders with their own toolchain) can substitute them.
"""

import importlib.util
import logging
import py_compile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib.machinery import SourcelessFileLoader
from pathlib import Path
from typing import Any, Mapping, Optional

from masquerade.errors import LoadError

__all__ = ["CompilationResult", "Compiler", "PyCompiler", "Loader", "ModuleLoader"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationResult:
    """Outcome of compiling one source file.

    Attributes:
        success: Whether compilation produced output.
        output: Location of the compiled output, when successful.
        diagnostics: Compiler messages, typically the syntax error on failure.
    """

    success: bool
    output: Optional[Path] = None
    diagnostics: str = ""


class Compiler(ABC):
    @abstractmethod
    def compile(self, source: Path, target: Path) -> CompilationResult:
        """Compile ``source`` into ``target``, reporting failure in the result."""


class PyCompiler(Compiler):
    """Byte-compile source files with :mod:`py_compile`."""

    def __init__(self, optimize: int = -1):
        self._optimize = optimize

    def compile(self, source: Path, target: Path) -> CompilationResult:
        try:
            output = py_compile.compile(
                str(source), cfile=str(target), doraise=True, optimize=self._optimize
            )
        except py_compile.PyCompileError as e:
            return CompilationResult(False, None, e.msg)
        return CompilationResult(True, Path(output))


class Loader(ABC):
    @abstractmethod
    def load(
        self, compiled: Path, qualified_name: str, namespace: Mapping[str, Any]
    ) -> type:
        """Execute ``compiled`` and return the class named by ``qualified_name``.

        Args:
            compiled: Location of the compiled module.
            qualified_name: ``module.ClassName`` of the class to return.
            namespace: Names bound in the module before its code runs.

        Raises:
            LoadError: If the module cannot run or does not define the class.
        """


class ModuleLoader(Loader):
    """Load byte-compiled modules without registering them in ``sys.modules``."""

    def load(
        self, compiled: Path, qualified_name: str, namespace: Mapping[str, Any]
    ) -> type:
        module_name, _, class_name = qualified_name.rpartition(".")
        loader = SourcelessFileLoader(module_name, str(compiled))
        spec = importlib.util.spec_from_file_location(
            module_name, str(compiled), loader=loader
        )
        module = importlib.util.module_from_spec(spec)
        module.__dict__.update(namespace)

        try:
            loader.exec_module(module)
        except Exception as e:
            raise LoadError(f"Could not execute generated module {module_name}: {e}") from e

        generated = module.__dict__.get(class_name)
        if not isinstance(generated, type):
            raise LoadError(f"Generated module {module_name} does not define {class_name}")

        logger.debug("Loaded %s from %s", qualified_name, compiled)
        return generated
