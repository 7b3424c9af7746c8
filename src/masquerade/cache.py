"""Artifact cache with at-most-once generation per contract.

Entries are published only after a generation pass succeeds and are never
evicted or replaced. Concurrent requests for a contract that has not been
generated yet share one generation pass: the first caller generates while the
others wait on a per-contract lock and then read the published artifact.
"""

import threading
from typing import Callable, Optional

from masquerade.domain import GeneratedArtifact, TypeDescriptor

__all__ = ["ArtifactCache"]


class ArtifactCache:
    """Mapping from contract descriptor to generated artifact.

    Example:
        >>> cache = ArtifactCache()
        >>> artifact = cache.get_or_create(descriptor, lambda: generate(descriptor))
        >>> cache.get_or_create(descriptor, generate_again) is artifact  # True; not called
    """

    def __init__(self):
        self._artifacts: dict[TypeDescriptor, GeneratedArtifact] = {}
        self._locks: dict[TypeDescriptor, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, contract: TypeDescriptor) -> Optional[GeneratedArtifact]:
        return self._artifacts.get(contract)

    def get_or_create(
        self,
        contract: TypeDescriptor,
        create: Callable[[], GeneratedArtifact],
    ) -> GeneratedArtifact:
        """Return the cached artifact, calling ``create`` at most once on a miss.

        If ``create`` raises, nothing is stored and the exception propagates;
        the next request runs ``create`` again.
        """
        artifact = self._artifacts.get(contract)
        if artifact is not None:
            return artifact

        with self._lock_for(contract):
            artifact = self._artifacts.get(contract)
            if artifact is None:
                artifact = create()
                self._artifacts[contract] = artifact
        return artifact

    def _lock_for(self, contract: TypeDescriptor) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(contract, threading.Lock())

    def __contains__(self, contract: TypeDescriptor) -> bool:
        return contract in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)
