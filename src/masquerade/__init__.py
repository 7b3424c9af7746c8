"""Masquerade: runtime implementations of interfaces and classes.

Masquerade synthesizes Python source for an implementation of a contract (an
interface or a class), byte-compiles it, loads it and caches the resulting
class, so that each contract is generated once per generator. What goes inside
the generated class is decided by a small set of synthesis hooks.

On top of the generator, delegating proxies let one handler object stand in
for any interface: every method of the proxy forwards to
``handler.call(contract, method, *args)``.

Key Features:
    - Pluggable synthesis hooks for imports, bases, class body, constructor and methods
    - Deterministic source text, independent of hook iteration order
    - One generation per contract, with failed attempts never cached
    - Temporary source storage removed on every exit path
    - Delegating proxies with per-call result type checks

Basic Usage:
    >>> from masquerade.builders import augment
    >>> from masquerade.proxy import CallHandler
    >>>
    >>> class Recorder(CallHandler):
    ...     def call(self, contract, method, *args):
    ...         print(method.name, args)
    >>>
    >>> runnable = augment(Runnable, Recorder())
    >>> runnable.run()  # prints "run ()"

The framework consists of several core modules:
    - generator: The class generation engine and instance factory
    - proxy: Delegating proxy builder and call handler interface
    - builders: High-level generator and proxy construction functions
    - hooks: Synthesis hook base class and function-based hooks
    - source: Source text assembly
    - toolchain: Compiler and loader collaborators
    - cache: Artifact cache with one generation per contract
    - casting: Result type checks available to generated code
    - config: Generator configuration, optionally read from TOML
    - introspect: Contract descriptors built from live classes
    - domain: Core domain models (TypeDescriptor, MethodDescriptor, GeneratedArtifact)
    - errors: Framework-specific exceptions
"""
