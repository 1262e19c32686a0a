"""Program and index models.

``ProgramEntry`` is both the index record and the body of the per-program
metadata blob, so a rebuild can reconstruct the index from metadata blobs
alone.  The binary payload is never part of either.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from elfregistry.storage.layout import binary_object_path, metadata_object_path


class ProgramMetadata(BaseModel):
    """Free-form build metadata supplied by the uploader (unvalidated)."""

    model_config = ConfigDict(frozen=True)

    toolchain: str
    commit: str
    zkvm: str


class ProgramInfo(BaseModel):
    """Public view of a program, as returned by list and upload."""

    model_config = ConfigDict(frozen=True)

    program_id: str
    size_bytes: int
    uploaded_at: datetime
    metadata: ProgramMetadata


class ProgramEntry(BaseModel):
    """Index record for one uploaded program.

    ``storage_key`` is the SHA-256 hex digest of ``program_id``; backend
    object paths are derived from it and the contract name.
    """

    model_config = ConfigDict(frozen=True)

    program_id: str
    contract: str
    storage_key: str
    size_bytes: int = Field(ge=0)
    uploaded_at: datetime
    metadata: ProgramMetadata

    @property
    def binary_path(self) -> str:
        return binary_object_path(self.contract, self.storage_key)

    @property
    def metadata_path(self) -> str:
        return metadata_object_path(self.contract, self.storage_key)

    def info(self) -> ProgramInfo:
        return ProgramInfo(
            program_id=self.program_id,
            size_bytes=self.size_bytes,
            uploaded_at=self.uploaded_at,
            metadata=self.metadata,
        )


class ContractIndex(BaseModel):
    """All programs of one contract, keyed by ``program_id``."""

    model_config = ConfigDict(frozen=True)

    programs: dict[str, ProgramEntry] = Field(default_factory=dict)


class IndexFile(BaseModel):
    """The full Contract -> Programs mapping, persisted as ``index.json``.

    Snapshots are immutable: every mutation returns a new ``IndexFile`` so a
    reader holding the previous snapshot never observes a half-applied
    change.
    """

    model_config = ConfigDict(frozen=True)

    contracts: dict[str, ContractIndex] = Field(default_factory=dict)

    def get_program(self, contract: str, program_id: str) -> ProgramEntry | None:
        contract_index = self.contracts.get(contract)
        if contract_index is None:
            return None
        return contract_index.programs.get(program_id)

    def program_count(self) -> int:
        return sum(len(c.programs) for c in self.contracts.values())

    def with_program(self, entry: ProgramEntry) -> IndexFile:
        """Return a copy with *entry* inserted or replacing the same key."""
        contracts = dict(self.contracts)
        existing = contracts.get(entry.contract, ContractIndex())
        programs = dict(existing.programs)
        programs[entry.program_id] = entry
        contracts[entry.contract] = ContractIndex(programs=programs)
        return IndexFile(contracts=contracts)

    def without_program(self, contract: str, program_id: str) -> IndexFile:
        """Return a copy without the program; an emptied contract is dropped."""
        contracts = dict(self.contracts)
        existing = contracts.get(contract)
        if existing is None:
            return self
        programs = {
            pid: entry
            for pid, entry in existing.programs.items()
            if pid != program_id
        }
        if programs:
            contracts[contract] = ContractIndex(programs=programs)
        else:
            contracts.pop(contract)
        return IndexFile(contracts=contracts)

    def without_contract(self, contract: str) -> IndexFile:
        contracts = {
            name: entry for name, entry in self.contracts.items() if name != contract
        }
        return IndexFile(contracts=contracts)


class DownloadedProgram(BaseModel):
    """Binary payload plus the metadata recorded at upload."""

    model_config = ConfigDict(frozen=True)

    binary: bytes
    program: ProgramInfo


class RegistryStats(BaseModel):
    """Point-in-time counters for operators."""

    model_config = ConfigDict(frozen=True)

    backend: str
    contracts: int
    programs: int
    total_bytes: int
    cached_binaries: int
