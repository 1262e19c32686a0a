"""Local filesystem object store.

Objects live as plain files under a root directory.  Writes go to a hidden
temporary file in the destination directory and are renamed into place, so
a concurrent reader sees either the old object or the new one, never a
partial file.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path, PurePosixPath

from elfregistry.errors import BackendIOError, ObjectNotFoundError

logger = logging.getLogger(__name__)

_TMP_SUFFIX = ".tmp"


def _is_temp_file(name: str) -> bool:
    return name.startswith(".") and name.endswith(_TMP_SUFFIX)


class LocalObjectStore:
    """Filesystem-backed ``ObjectStore``.

    Parameters
    ----------
    root:
        Directory holding all objects.  Created (with parents) if missing.
    """

    name = "local"

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        """Map an object path to a file under the root.

        Rejects absolute paths and ``..`` segments so no object path can
        address a file outside the root.
        """
        relative = PurePosixPath(path)
        if not path or relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"Invalid object path: {path!r}")
        return self._root.joinpath(*relative.parts)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise ObjectNotFoundError(path) from exc
        except OSError as exc:
            raise BackendIOError(f"Failed to read local object {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}{_TMP_SUFFIX}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise BackendIOError(f"Failed to write local object {path}: {exc}") from exc
        logger.debug("Wrote local object %s (%d bytes)", path, len(data))

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise ObjectNotFoundError(path) from exc
        except OSError as exc:
            raise BackendIOError(f"Failed to delete local object {path}: {exc}") from exc
        # Empty contract directories are left in place; removing them would
        # race with a concurrent put into the same directory.
        logger.debug("Deleted local object %s", path)

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list(self, prefix: str = "") -> list[str]:
        # Walk only the deepest directory named by the prefix, then filter.
        base_dir = prefix.rpartition("/")[0]
        base = self._resolve(base_dir) if base_dir else self._root
        if not base.is_dir():
            return []

        objects: list[str] = []
        try:
            for dirpath, _dirnames, filenames in os.walk(base):
                for filename in filenames:
                    if _is_temp_file(filename):
                        continue
                    full = Path(dirpath) / filename
                    relative = full.relative_to(self._root).as_posix()
                    if relative.startswith(prefix):
                        objects.append(relative)
        except OSError as exc:
            raise BackendIOError(f"Failed to list local objects under {prefix!r}: {exc}") from exc
        objects.sort()
        return objects
