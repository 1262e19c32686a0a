"""Registry error kinds.

Every failure the core reports derives from ``RegistryError`` so callers
(an HTTP layer, the CLI) can map outcomes with a single ``except``:

* ``ContractNameError`` / ``ProgramIdError``: validation, a 4xx outcome.
* ``NotFoundError`` and its subclasses: unknown contract/program or an
  object missing from the backend, a 4xx outcome.
* ``BackendIOError``: disk or remote storage failure; retryable.
* ``IndexCorruptError``: recovered internally by a rebuild, never surfaced.
* ``ConflictError``: reserved; uploads are last-write-wins.
"""

from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for all registry failures."""


class ContractNameError(RegistryError, ValueError):
    """Raised when a contract name is not lowercase ``[a-z0-9-]+``."""


class ProgramIdError(RegistryError, ValueError):
    """Raised when a program identifier is empty."""


class NotFoundError(RegistryError, LookupError):
    """Raised when a requested contract, program or object does not exist."""


class ObjectNotFoundError(NotFoundError):
    """Raised by an object store when a path holds no object."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Object not found: {path}")
        self.path = path


class ContractNotFoundError(NotFoundError):
    """Raised when a contract has no entry in the index."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"Contract not found: {contract}")
        self.contract = contract


class ProgramNotFoundError(NotFoundError):
    """Raised when a program has no entry in the index or no stored binary."""

    def __init__(self, contract: str, program_id: str) -> None:
        super().__init__(f"Program not found: {contract}/{program_id}")
        self.contract = contract
        self.program_id = program_id


class BackendIOError(RegistryError):
    """Raised when the storage backend fails (disk, permissions, network)."""


class IndexCorruptError(RegistryError):
    """Raised when the persisted index blob exists but cannot be parsed."""


class ConflictError(RegistryError):
    """Reserved for optimistic-concurrency checks; never raised today."""
