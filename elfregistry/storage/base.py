"""Object store protocol — the port every storage backend implements.

The registry index and service depend only on this protocol, never on a
concrete backend.  Paths are ``/``-separated strings relative to the
backend's root (a directory or a bucket key prefix).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStore(Protocol):
    """Uniform get/put/delete/list over opaque byte blobs.

    Implementations must provide read-your-writes for a single path and
    report missing objects as ``ObjectNotFoundError``; every other failure
    is raised as ``BackendIOError``.
    """

    name: str

    def get(self, path: str) -> bytes:
        """Return the bytes stored at *path*."""
        ...

    def put(self, path: str, data: bytes) -> None:
        """Store *data* at *path*, replacing any existing object.

        A failed put must not leave a partially written object visible.
        """
        ...

    def delete(self, path: str) -> None:
        """Remove the object at *path*."""
        ...

    def list(self, prefix: str = "") -> list[str]:
        """Return every object path starting with *prefix*, sorted."""
        ...
