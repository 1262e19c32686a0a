"""Build the configured object store."""

from __future__ import annotations

import logging

from elfregistry.config import RegistryConfig
from elfregistry.storage.base import ObjectStore
from elfregistry.storage.local import LocalObjectStore

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("local", "bucket")


def create_object_store(config: RegistryConfig) -> ObjectStore:
    """Return the backend selected by ``config.storage_backend``.

    Raises
    ------
    ValueError
        For an unknown backend, or the bucket backend without a bucket name.
    """
    backend = config.storage_backend.strip().lower()
    if backend == "local":
        logger.info("Using local storage at %s", config.local_root)
        return LocalObjectStore(config.local_root)
    if backend == "bucket":
        if not config.bucket_name.strip():
            raise ValueError("bucket_name must be set for the bucket backend")
        from elfregistry.storage.bucket import BucketObjectStore

        return BucketObjectStore(
            config.bucket_name,
            config.bucket_prefix,
            region_name=config.bucket_region,
            endpoint_url=config.bucket_endpoint_url,
        )
    raise ValueError(
        f"Unsupported storage_backend {config.storage_backend!r}; "
        f"expected one of {', '.join(SUPPORTED_BACKENDS)}"
    )
