"""ELF registry data models — all Pydantic v2, all frozen (immutable)."""

from elfregistry.models.programs import (
    ContractIndex,
    DownloadedProgram,
    IndexFile,
    ProgramEntry,
    ProgramInfo,
    ProgramMetadata,
    RegistryStats,
)

__all__ = [
    "ProgramMetadata",
    "ProgramInfo",
    "ProgramEntry",
    "ContractIndex",
    "IndexFile",
    "DownloadedProgram",
    "RegistryStats",
]
