"""Index rebuild from per-program metadata blobs.

This is the recovery path, used only when ``index.json`` is missing or
unreadable.  It costs one list call plus one fetch per program and makes
best-effort progress over partial corruption: a bad metadata blob is
skipped with a warning, never fatal.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from elfregistry.core.hasher import storage_key_for
from elfregistry.errors import ObjectNotFoundError
from elfregistry.models.programs import ContractIndex, IndexFile, ProgramEntry
from elfregistry.storage.base import ObjectStore
from elfregistry.storage.layout import parse_metadata_path

logger = logging.getLogger(__name__)


def _load_entry(store: ObjectStore, path: str, contract: str, storage_key: str) -> ProgramEntry | None:
    try:
        raw = store.get(path)
    except ObjectNotFoundError:
        # Deleted between list and fetch.
        logger.info("Metadata blob %s vanished during rebuild; skipping", path)
        return None

    try:
        entry = ProgramEntry.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Skipping unparsable metadata blob %s: %s", path, exc)
        return None

    if entry.storage_key != storage_key or storage_key_for(entry.program_id) != storage_key:
        logger.warning(
            "Skipping metadata blob %s: storage key does not match program id %r",
            path,
            entry.program_id,
        )
        return None

    if entry.contract != contract:
        logger.warning(
            "Metadata blob %s names contract %r; using path contract %r",
            path,
            entry.contract,
            contract,
        )
        entry = entry.model_copy(update={"contract": contract})
    return entry


def rebuild_index(store: ObjectStore) -> IndexFile:
    """Reconstruct the registry index by scanning metadata blobs.

    Programs are grouped by the contract segment of their metadata path.
    Backend failures while listing or fetching propagate as
    ``BackendIOError``.
    """
    logger.info("Rebuilding index from %s storage", store.name)
    grouped: dict[str, dict[str, ProgramEntry]] = {}
    skipped = 0
    for path in store.list():
        parsed = parse_metadata_path(path)
        if parsed is None:
            continue
        contract, storage_key = parsed
        entry = _load_entry(store, path, contract, storage_key)
        if entry is None:
            skipped += 1
            continue
        grouped.setdefault(contract, {})[entry.program_id] = entry

    index = IndexFile(
        contracts={
            contract: ContractIndex(programs=programs)
            for contract, programs in grouped.items()
        }
    )

    logger.info(
        "Rebuilt index with %d contracts and %d programs (%d metadata blobs skipped)",
        len(index.contracts),
        index.program_count(),
        skipped,
    )
    return index
