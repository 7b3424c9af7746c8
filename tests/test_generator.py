import logging
from abc import ABC, abstractmethod

import pytest

from masquerade.config import GeneratorConfig
from masquerade.errors import (
    CompilationError,
    InstantiationError,
    InvalidContractError,
    InvalidHierarchyError,
    LoadError,
)
from masquerade.generator import ClassGenerator
from masquerade.hooks import make_hooks
from masquerade.introspect import describe
from masquerade.toolchain import PyCompiler


class Greeter(ABC):
    @abstractmethod
    def greet(self, name: str) -> str: ...


class Toolbox(ABC):
    @abstractmethod
    def hammer(self) -> str: ...

    @abstractmethod
    def saw(self) -> str: ...

    @abstractmethod
    def drill(self) -> str: ...

    def inventory(self) -> list:
        return [self.hammer(), self.saw(), self.drill()]


class Named(ABC):
    @abstractmethod
    def name(self) -> str: ...


class LoudNamed(Named):
    @abstractmethod
    def shout(self) -> str: ...


class Template(ABC):
    def __init__(self, prefix: str = "> "):
        self.prefix = prefix

    @abstractmethod
    def body(self) -> str: ...

    def render(self) -> str:
        return self.prefix + self.body()


class Counter:
    def __init__(self):
        self.count = 0

    def increment(self) -> int:
        self.count += 1
        return self.count


class Salutation:
    def salute(self) -> str:
        return "Hello "


class CountingCompiler(PyCompiler):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def compile(self, source, target):
        self.calls += 1
        return super().compile(source, target)


@pytest.fixture
def compiler():
    return CountingCompiler()


@pytest.fixture
def config(tmp_path):
    return GeneratorConfig(work_dir=tmp_path / "work")


@pytest.fixture
def generator_for(compiler, config):
    def make(**hooks) -> ClassGenerator:
        return ClassGenerator(make_hooks(**hooks), config, compiler)

    return make


def test_hello_world(generator_for):
    generator = generator_for(method_body=lambda c, m: 'return "Hello " + par0')

    greeter = generator.new_instance(Greeter)

    assert isinstance(greeter, Greeter)
    assert greeter.greet("World") == "Hello World"


def test_each_method_runs_its_own_body(generator_for):
    generator = generator_for(method_body=lambda c, m: f"return {m.name!r}")

    toolbox = generator.new_instance(Toolbox)

    assert toolbox.hammer() == "hammer"
    assert toolbox.saw() == "saw"
    assert toolbox.drill() == "drill"
    assert toolbox.inventory() == ["hammer", "saw", "drill"]


def test_resolve_reuses_cached_artifact(generator_for, compiler):
    generator = generator_for(method_body=lambda c, m: "return par0")

    first = generator.resolve(Greeter)
    second = generator.resolve(describe(Greeter))

    assert first is second
    assert compiler.calls == 1
    assert generator.is_resolved(Greeter)
    assert generator.new_instance(Greeter).greet("x") == "x"
    assert compiler.calls == 1


def test_artifact_describes_contract(generator_for):
    artifact = generator_for().resolve(Greeter)

    assert artifact.contract == describe(Greeter)
    assert artifact.implementation.__name__ == "GreeterImpl"
    assert artifact.qualified_name.startswith("masquerade.generated.")
    assert artifact.qualified_name.endswith(".GreeterImpl")
    assert issubclass(artifact.implementation, Greeter)


@pytest.mark.parametrize("contract", [int, str, bool, float, list, tuple, list[int], bytes])
def test_primitive_and_array_contracts_are_rejected(generator_for, compiler, contract):
    with pytest.raises(InvalidContractError, match="primitive|array"):
        generator_for().resolve(contract)

    assert compiler.calls == 0


def test_compilation_error_is_not_cached(generator_for, compiler):
    generator = generator_for(method_body=lambda c, m: "return (")

    with pytest.raises(CompilationError, match="Could not compile implementation of"):
        generator.resolve(Greeter)
    assert not generator.is_resolved(Greeter)

    with pytest.raises(CompilationError):
        generator.resolve(Greeter)
    assert compiler.calls == 2


def test_compile_failure_is_logged(generator_for, caplog):
    generator = generator_for(method_body=lambda c, m: "return (")

    with caplog.at_level(logging.WARNING, logger="masquerade.generator"):
        with pytest.raises(CompilationError):
            generator.resolve(Greeter)

    assert "Compilation of" in caplog.text


def test_generation_is_logged(generator_for, caplog):
    with caplog.at_level(logging.INFO, logger="masquerade.generator"):
        generator_for().resolve(Greeter)

    assert "Generated masquerade.generated." in caplog.text


def test_temporary_sources_are_removed(generator_for, config):
    generator_for(method_body=lambda c, m: "return par0").resolve(Greeter)
    assert list(config.work_dir.iterdir()) == []

    with pytest.raises(CompilationError):
        generator_for(method_body=lambda c, m: "return (").resolve(Greeter)
    assert list(config.work_dir.iterdir()) == []

    with pytest.raises(LoadError):
        generator_for(class_body=lambda c: "raise RuntimeError('boom')").resolve(Greeter)
    assert list(config.work_dir.iterdir()) == []


def test_failing_class_body_is_a_load_error(generator_for):
    generator = generator_for(class_body=lambda c: "raise RuntimeError('boom')")

    with pytest.raises(LoadError, match="boom"):
        generator.resolve(Greeter)
    assert not generator.is_resolved(Greeter)


def test_missing_import_is_a_load_error(generator_for):
    generator = generator_for(imports=lambda c: ["masquerade_no_such_module"])

    with pytest.raises(LoadError, match="masquerade_no_such_module"):
        generator.resolve(Greeter)


def test_imports_are_available_to_bodies(generator_for):
    class Serializer(ABC):
        @abstractmethod
        def serialize(self, value: dict) -> str: ...

    generator = generator_for(
        imports=lambda c: ["json"],
        method_body=lambda c, m: "return json.dumps(par0, sort_keys=True)",
    )

    assert generator.new_instance(Serializer).serialize({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'


def test_constructor_body_runs_on_instantiation(generator_for):
    generator = generator_for(
        constructor_body=lambda c, ctors: "self.greeting = 'Hi'",
        method_body=lambda c, m: "return self.greeting + ' ' + par0",
    )

    assert generator.new_instance(Greeter).greet("there") == "Hi there"


def test_failing_constructor_is_an_instantiation_error(generator_for, compiler):
    generator = generator_for(constructor_body=lambda c, ctors: "raise ValueError('nope')")

    with pytest.raises(InstantiationError, match="nope"):
        generator.new_instance(Greeter)
    with pytest.raises(InstantiationError):
        generator.new_instance(Greeter)

    assert compiler.calls == 1


def test_inherited_abstract_methods_are_not_generated(generator_for):
    generator = generator_for(method_body=lambda c, m: "return 'HEY'")

    with pytest.raises(InstantiationError, match="abstract"):
        generator.new_instance(LoudNamed)


def test_class_contract_is_extended(generator_for):
    generator = generator_for(method_body=lambda c, m: "return 'generated'")

    template = generator.new_instance(Template)

    assert isinstance(template, Template)
    assert template.render() == "> generated"


def test_concrete_class_inherits_its_behaviour(generator_for):
    counter = generator_for().new_instance(Counter)

    assert counter.increment() == 1
    assert counter.increment() == 2


def test_constructor_fragment_runs_after_superclass_constructor(generator_for):
    counter = generator_for(constructor_body=lambda c, ctors: "self.count += 10").new_instance(
        Counter
    )

    assert counter.increment() == 11


def test_empty_constructor_fragment_keeps_inherited_constructor(generator_for):
    counter = generator_for(constructor_body=lambda c, ctors: "").new_instance(Counter)

    assert counter.count == 0


def test_constructor_with_required_arguments_is_called_by_fragment(generator_for):
    class Account:
        def __init__(self, owner: str):
            self.owner = owner

    account = generator_for(
        constructor_body=lambda c, ctors: "super().__init__('ada')"
    ).new_instance(Account)

    assert account.owner == "ada"


def test_imported_name_does_not_shadow_contract(generator_for):
    class Path(ABC):
        @abstractmethod
        def name(self) -> str: ...

    generator = generator_for(
        imports=lambda c: ["from pathlib import Path"],
        method_body=lambda c, m: "return Path('/tmp/file.txt').name",
    )

    artifact = generator.resolve(Path)

    assert issubclass(artifact.implementation, Path)
    assert artifact.implementation().name() == "file.txt"


def test_constructor_fragment_receives_constructors(generator_for):
    seen = []

    def constructor_body(contract, constructors):
        seen.extend(constructors)
        return "super().__init__('$ ')"

    template = generator_for(
        constructor_body=constructor_body,
        method_body=lambda c, m: "return 'ok'",
    ).new_instance(Template)

    assert template.render() == "$ ok"
    assert [ctor.parameter_names for ctor in seen] == [("prefix",)]


def test_hook_superclass_is_extended(generator_for):
    generator = generator_for(
        superclass=lambda c: Salutation,
        method_body=lambda c, m: "return self.salute() + par0",
    )

    greeter = generator.new_instance(Greeter)

    assert isinstance(greeter, Salutation)
    assert greeter.greet("World") == "Hello World"


def test_invalid_hierarchy_fails_before_compiling(generator_for, compiler):
    with pytest.raises(InvalidHierarchyError):
        generator_for(superclass=lambda c: Named).resolve(Greeter)
    with pytest.raises(InvalidHierarchyError):
        generator_for(interfaces=lambda c: [Counter]).resolve(Greeter)

    assert compiler.calls == 0


def test_hook_interfaces_are_implemented(generator_for):
    generator = generator_for(
        interfaces=lambda c: [Named],
        class_body=lambda c: "def name(self):\n    return 'named'",
        method_body=lambda c, m: "return par0",
    )

    greeter = generator.new_instance(Greeter)

    assert isinstance(greeter, Named)
    assert greeter.name() == "named"


def test_synthesize_does_not_compile(generator_for, compiler):
    generator = generator_for(method_body=lambda c, m: 'return "Hello " + par0')

    unit = generator.synthesize(Greeter)

    assert 'return "Hello " + par0' in unit.text
    assert compiler.calls == 0
    assert not generator.is_resolved(Greeter)


def test_generated_module_is_not_registered(generator_for):
    import sys

    artifact = generator_for().resolve(Greeter)

    assert artifact.implementation.__module__ not in sys.modules


def test_default_config_uses_system_temporary_directory():
    generator = ClassGenerator(make_hooks(method_body=lambda c, m: "return par0.upper()"))

    assert generator.new_instance(Greeter).greet("hi") == "HI"
