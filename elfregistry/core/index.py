"""Registry index — the single source of truth for which programs exist.

The index is an immutable ``IndexFile`` snapshot held in memory and
persisted as ``index.json`` at the storage root.  Readers take the current
snapshot without locking.  Every mutation runs under one write lock:

1. acquire the lock,
2. load the current snapshot,
3. apply the change in memory (copy-on-write),
4. persist the new snapshot with an atomic ``put``,
5. swap the in-memory snapshot,
6. release the lock.

If step 4 fails the persisted index and the in-memory snapshot both stay
as they were and the failure propagates.  Rebuilds run under the same lock,
so only one rebuild-and-persist is ever in flight.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from pydantic import ValidationError

from elfregistry.core.index_builder import rebuild_index
from elfregistry.errors import (
    BackendIOError,
    ContractNotFoundError,
    IndexCorruptError,
    ObjectNotFoundError,
    ProgramNotFoundError,
)
from elfregistry.models.programs import ContractIndex, IndexFile, ProgramEntry
from elfregistry.storage.base import ObjectStore
from elfregistry.storage.layout import INDEX_OBJECT

logger = logging.getLogger(__name__)


class RegistryIndex:
    """In-memory + persisted Contract -> Programs mapping.

    Parameters
    ----------
    store:
        Backend holding ``index.json`` and the per-program metadata blobs
        used for rebuilds.
    """

    def __init__(self, store: ObjectStore) -> None:
        self._store = store
        self._write_lock = threading.Lock()
        self._snapshot: IndexFile | None = None
        self.rebuild_count = 0

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> IndexFile:
        """Return the current index snapshot.

        Serves the cached snapshot when present.  Otherwise reads
        ``index.json``, rebuilding from metadata blobs when it is missing
        or unparsable, and caches the result before returning.
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._write_lock:
            return self._load_locked()

    def invalidate(self) -> None:
        """Drop the in-memory snapshot; the next ``load`` re-reads storage."""
        with self._write_lock:
            self._snapshot = None

    def _load_locked(self) -> IndexFile:
        if self._snapshot is not None:
            return self._snapshot

        try:
            index = self._read_persisted()
        except ObjectNotFoundError:
            logger.info("Index %s not found; rebuilding from stored objects", INDEX_OBJECT)
            index = self._rebuild_and_persist()
        except IndexCorruptError as exc:
            logger.warning("%s; rebuilding from stored objects", exc)
            index = self._rebuild_and_persist()

        self._snapshot = index
        return index

    def _read_persisted(self) -> IndexFile:
        raw = self._store.get(INDEX_OBJECT)
        try:
            return IndexFile.model_validate_json(raw)
        except ValidationError as exc:
            raise IndexCorruptError(f"Persisted index {INDEX_OBJECT} is unparsable: {exc}") from exc

    def _rebuild_and_persist(self) -> IndexFile:
        index = rebuild_index(self._store)
        self.rebuild_count += 1
        try:
            self._persist(index)
        except BackendIOError as exc:
            # The rebuilt snapshot is still served; the next mutation persists it.
            logger.warning("Failed to persist rebuilt index: %s", exc)
        return index

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, entry: ProgramEntry) -> IndexFile:
        """Insert or replace the program keyed by ``(contract, program_id)``.

        *entry* carries the ``uploaded_at`` and ``size_bytes`` of the upload
        that produced it; any previous record for the key is replaced whole.
        """
        return self._mutate(lambda current: current.with_program(entry))

    def remove_program(self, contract: str, program_id: str) -> ProgramEntry:
        """Remove one program and return its last record.

        Raises
        ------
        ProgramNotFoundError
            If the program is not in the index.
        """
        removed: list[ProgramEntry] = []

        def apply(current: IndexFile) -> IndexFile:
            entry = current.get_program(contract, program_id)
            if entry is None:
                raise ProgramNotFoundError(contract, program_id)
            removed.append(entry)
            return current.without_program(contract, program_id)

        self._mutate(apply)
        return removed[0]

    def remove_contract(self, contract: str) -> ContractIndex:
        """Remove a contract with all of its programs and return them.

        Raises
        ------
        ContractNotFoundError
            If the contract is not in the index.
        """
        removed: list[ContractIndex] = []

        def apply(current: IndexFile) -> IndexFile:
            contract_index = current.contracts.get(contract)
            if contract_index is None:
                raise ContractNotFoundError(contract)
            removed.append(contract_index)
            return current.without_contract(contract)

        self._mutate(apply)
        return removed[0]

    def rebuild(self) -> IndexFile:
        """Force a rebuild from metadata blobs and persist the result.

        Unlike the implicit rebuild in ``load``, a persistence failure here
        propagates and the previous snapshot is kept.
        """
        with self._write_lock:
            index = rebuild_index(self._store)
            self.rebuild_count += 1
            self._persist(index)
            self._snapshot = index
            return index

    def _mutate(self, apply: Callable[[IndexFile], IndexFile]) -> IndexFile:
        with self._write_lock:
            current = self._load_locked()
            updated = apply(current)
            try:
                self._persist(updated)
            except BackendIOError as exc:
                logger.warning(
                    "Index update not persisted; previous index kept: %s", exc
                )
                raise
            self._snapshot = updated
            return updated

    def _persist(self, index: IndexFile) -> None:
        data = index.model_dump_json().encode("utf-8")
        self._store.put(INDEX_OBJECT, data)
        logger.debug(
            "Persisted index with %d contracts and %d programs",
            len(index.contracts),
            index.program_count(),
        )
