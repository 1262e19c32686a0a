"""Object storage backends.

``LocalObjectStore`` keeps objects on the filesystem; ``BucketObjectStore``
(``elfregistry.storage.bucket``) keeps them in an S3-compatible bucket and is
imported on demand so the local backend works without touching boto3.
"""

from elfregistry.storage.base import ObjectStore
from elfregistry.storage.local import LocalObjectStore

__all__ = ["ObjectStore", "LocalObjectStore"]
