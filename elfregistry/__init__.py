"""ELF Registry: content-addressed storage for zkVM program binaries.

Programs are uploaded under a contract name and an opaque program id, stored
on a local filesystem or an S3-compatible bucket, indexed in a rebuildable
``index.json`` and served through a per-contract LRU binary cache.
"""

__version__ = "0.1.0"
__description__ = "Content-addressed registry for zkVM program binaries"

from elfregistry.core.registry import RegistryService
from elfregistry.models.programs import ProgramInfo, ProgramMetadata

__all__ = ["RegistryService", "ProgramInfo", "ProgramMetadata", "__version__"]
