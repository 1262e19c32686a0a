"""Registry configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``ELF_REGISTRY_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RegistryConfig(BaseSettings):
    """Registry configuration with environment variable overrides.

    Examples
    --------
    Local storage (default)::

        export ELF_REGISTRY_DATA_DIRECTORY=/var/lib/elf-registry

    Bucket storage::

        export ELF_REGISTRY_STORAGE_BACKEND=bucket
        export ELF_REGISTRY_BUCKET_NAME=my-registry
        export ELF_REGISTRY_BUCKET_PREFIX=prod
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ELF_REGISTRY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Storage backend: "local" or "bucket"
    storage_backend: str = "local"
    data_directory: Path = Path(".elf-registry")
    local_storage_path: Path | None = None  # defaults to data_directory/registry

    # Bucket backend
    bucket_name: str = ""
    bucket_prefix: str = ""
    bucket_region: str | None = None
    bucket_endpoint_url: str | None = None

    # Binary cache
    cache_entries_per_contract: int = Field(default=2, ge=1)

    @property
    def local_root(self) -> Path:
        """Root directory for the local backend."""
        if self.local_storage_path is not None:
            return self.local_storage_path
        return self.data_directory / "registry"


# Module-level singleton — import as `from elfregistry.config import config`
config = RegistryConfig()
