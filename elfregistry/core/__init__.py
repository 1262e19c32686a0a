"""Registry core — index, index rebuild, binary cache and the service facade."""

from elfregistry.core.binary_cache import BinaryCache
from elfregistry.core.index import RegistryIndex
from elfregistry.core.index_builder import rebuild_index
from elfregistry.core.registry import RegistryService

__all__ = ["BinaryCache", "RegistryIndex", "RegistryService", "rebuild_index"]
