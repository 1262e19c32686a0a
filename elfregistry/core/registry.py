"""Registry service — upload, list, download and delete programs.

Composes the object store, the registry index and the binary cache.

Write ordering
--------------
An upload writes the binary blob, then the metadata blob, then updates the
index.  The metadata blob is only written once the binary exists, so a
rebuild (which trusts metadata blobs alone) never resurrects a program
whose binary is missing.  A failure after the binary write leaves an orphan
blob behind; the next rebuild reconciles it.  Deletes remove the metadata
blob first for the same reason.

Concurrency
-----------
Blob transfers run outside the index write lock; only the
load-modify-persist-swap of the index is serialized.  Concurrent uploads of
the same key are last-write-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from elfregistry.config import RegistryConfig
from elfregistry.core.binary_cache import DEFAULT_CAPACITY_PER_CONTRACT, BinaryCache
from elfregistry.core.hasher import (
    storage_key_for,
    validate_contract_name,
    validate_program_id,
)
from elfregistry.core.index import RegistryIndex
from elfregistry.errors import (
    BackendIOError,
    ContractNotFoundError,
    ObjectNotFoundError,
    ProgramNotFoundError,
)
from elfregistry.models.programs import (
    DownloadedProgram,
    IndexFile,
    ProgramEntry,
    ProgramInfo,
    ProgramMetadata,
    RegistryStats,
)
from elfregistry.storage.base import ObjectStore
from elfregistry.storage.layout import METADATA_SUFFIX, contract_prefix

logger = logging.getLogger(__name__)


class RegistryService:
    """Request-level facade over storage, index and cache.

    Parameters
    ----------
    store:
        The object store holding binaries, metadata blobs and the index.
    cache_entries_per_contract:
        Binary cache capacity per contract.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        cache_entries_per_contract: int = DEFAULT_CAPACITY_PER_CONTRACT,
    ) -> None:
        self._store = store
        self._index = RegistryIndex(store)
        self._cache = BinaryCache(cache_entries_per_contract)

    @classmethod
    def from_config(cls, config: RegistryConfig) -> RegistryService:
        """Build a service over the backend selected in *config*."""
        from elfregistry.storage.factory import create_object_store

        return cls(
            create_object_store(config),
            cache_entries_per_contract=config.cache_entries_per_contract,
        )

    @property
    def store(self) -> ObjectStore:
        return self._store

    @property
    def index(self) -> RegistryIndex:
        return self._index

    @property
    def cache(self) -> BinaryCache:
        return self._cache

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(
        self,
        contract: str,
        program_id: str,
        metadata: ProgramMetadata,
        binary: bytes,
    ) -> ProgramInfo:
        """Store a program binary with its metadata, replacing any previous one.

        Raises
        ------
        ContractNameError
            If *contract* is not a valid contract name.
        ProgramIdError
            If *program_id* is empty.
        BackendIOError
            If any storage write fails.  Blobs already written are left in
            place for the next rebuild to reconcile.
        """
        validate_contract_name(contract)
        validate_program_id(program_id)
        storage_key = storage_key_for(program_id)

        entry = ProgramEntry(
            program_id=program_id,
            contract=contract,
            storage_key=storage_key,
            size_bytes=len(binary),
            uploaded_at=datetime.now(timezone.utc),
            metadata=metadata,
        )

        self._store.put(entry.binary_path, binary)
        try:
            self._store.put(entry.metadata_path, entry.model_dump_json().encode("utf-8"))
            self._index.upsert(entry)
        except BackendIOError:
            logger.warning(
                "Upload of %s/%s failed after the binary write; "
                "orphaned blobs are left for the next rebuild",
                contract,
                program_id,
            )
            raise
        finally:
            self._cache.invalidate(contract, storage_key)

        logger.info(
            "Uploaded %s/%s (%d bytes, toolchain=%s, zkvm=%s)",
            contract,
            program_id,
            entry.size_bytes,
            metadata.toolchain,
            metadata.zkvm,
        )
        return entry.info()

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list_all(self) -> dict[str, list[ProgramInfo]]:
        """Every contract with its programs, sorted by program id."""
        index = self._index.load()
        return {
            contract: _sorted_infos(contract_index.programs.values())
            for contract, contract_index in sorted(index.contracts.items())
        }

    def list_contract(self, contract: str) -> list[ProgramInfo]:
        """Programs of one contract, sorted by program id.

        Raises
        ------
        ContractNameError
            If *contract* is not a valid contract name.  Such a name can
            never have been uploaded, but it is reported as a validation
            failure rather than as not-found so callers can tell a typo in
            the name apart from an empty contract.
        ContractNotFoundError
            If the contract has no programs.
        """
        validate_contract_name(contract)
        contract_index = self._index.load().contracts.get(contract)
        if contract_index is None:
            raise ContractNotFoundError(contract)
        return _sorted_infos(contract_index.programs.values())

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def download(self, contract: str, program_id: str) -> DownloadedProgram:
        """Return a program's binary and recorded metadata.

        Serves from the binary cache when possible; otherwise fetches from
        the backend and caches the payload, unless the program was
        overwritten or deleted while the fetch was in flight.

        Raises
        ------
        ProgramNotFoundError
            If the program is not indexed or its binary is missing.
        BackendIOError
            If the backend read fails (retryable).
        """
        validate_contract_name(contract)
        # Taken before the index lookup: any invalidation after this point
        # voids the cache fill below.
        generation = self._cache.generation(contract)
        entry = self._index.load().get_program(contract, program_id)
        if entry is None:
            raise ProgramNotFoundError(contract, program_id)

        binary = self._cache.get(contract, entry.storage_key)
        if binary is not None:
            logger.debug("Binary cache hit for %s/%s", contract, program_id)
            return DownloadedProgram(binary=binary, program=entry.info())

        try:
            binary = self._store.get(entry.binary_path)
        except ObjectNotFoundError as exc:
            logger.warning(
                "Index lists %s/%s but its binary %s is missing from %s storage",
                contract,
                program_id,
                entry.binary_path,
                self._store.name,
            )
            raise ProgramNotFoundError(contract, program_id) from exc

        self._cache.put(contract, entry.storage_key, binary, generation=generation)
        return DownloadedProgram(binary=binary, program=entry.info())

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_program(self, contract: str, program_id: str) -> None:
        """Delete a program's blobs and its index entry.

        Raises
        ------
        ProgramNotFoundError
            If the program is not indexed.
        """
        validate_contract_name(contract)
        entry = self._index.load().get_program(contract, program_id)
        if entry is None:
            raise ProgramNotFoundError(contract, program_id)

        self._delete_tolerant(entry.metadata_path)
        self._delete_tolerant(entry.binary_path)
        self._cache.invalidate(contract, entry.storage_key)
        self._index.remove_program(contract, program_id)
        logger.info("Deleted program %s/%s", contract, program_id)

    def delete_contract(self, contract: str) -> None:
        """Delete every blob under a contract and its index entry.

        Raises
        ------
        ContractNotFoundError
            If the contract is not indexed.
        """
        validate_contract_name(contract)
        if contract not in self._index.load().contracts:
            raise ContractNotFoundError(contract)

        paths = self._store.list(contract_prefix(contract))
        # Metadata first: a half-finished delete must not be resurrected by a rebuild.
        paths.sort(key=lambda path: not path.endswith(METADATA_SUFFIX))
        for path in paths:
            self._delete_tolerant(path)

        self._cache.invalidate_contract(contract)
        self._index.remove_contract(contract)
        logger.info("Deleted contract %s (%d objects)", contract, len(paths))

    def _delete_tolerant(self, path: str) -> None:
        try:
            self._store.delete(path)
        except ObjectNotFoundError:
            logger.debug("Object %s already absent", path)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def rebuild_index(self) -> IndexFile:
        """Rebuild the index from metadata blobs and drop cached binaries."""
        index = self._index.rebuild()
        self._cache.clear()
        return index

    def stats(self) -> RegistryStats:
        index = self._index.load()
        return RegistryStats(
            backend=self._store.name,
            contracts=len(index.contracts),
            programs=index.program_count(),
            total_bytes=sum(
                entry.size_bytes
                for contract_index in index.contracts.values()
                for entry in contract_index.programs.values()
            ),
            cached_binaries=len(self._cache),
        )


def _sorted_infos(entries) -> list[ProgramInfo]:
    return [entry.info() for entry in sorted(entries, key=lambda e: e.program_id)]
