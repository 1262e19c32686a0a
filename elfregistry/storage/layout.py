"""Object path layout shared by every backend.

Storage layout::

    index.json
    {contract}/{storage_key}.elf
    {contract}/{storage_key}.json
"""

from __future__ import annotations

INDEX_OBJECT = "index.json"
BINARY_SUFFIX = ".elf"
METADATA_SUFFIX = ".json"


def binary_object_path(contract: str, storage_key: str) -> str:
    return f"{contract}/{storage_key}{BINARY_SUFFIX}"


def metadata_object_path(contract: str, storage_key: str) -> str:
    return f"{contract}/{storage_key}{METADATA_SUFFIX}"


def contract_prefix(contract: str) -> str:
    return f"{contract}/"


def parse_metadata_path(path: str) -> tuple[str, str] | None:
    """Split ``{contract}/{storage_key}.json`` into its two segments.

    Returns ``None`` for the index object and for anything that does not
    have exactly that shape.
    """
    if path == INDEX_OBJECT or not path.endswith(METADATA_SUFFIX):
        return None
    parts = path.split("/")
    if len(parts) != 2:
        return None
    contract, filename = parts
    storage_key = filename[: -len(METADATA_SUFFIX)]
    if not contract or not storage_key:
        return None
    return contract, storage_key
