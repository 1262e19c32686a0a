"""Shared test fixtures for the ELF registry."""

from __future__ import annotations

import io
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from elfregistry.core.registry import RegistryService
from elfregistry.errors import BackendIOError
from elfregistry.models.programs import ProgramMetadata
from elfregistry.storage.local import LocalObjectStore

ELF_HEADER = b"\x7fELF"


class CountingStore:
    """ObjectStore wrapper that counts reads and can fail chosen writes."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self.name = inner.name
        self.gets: Counter[str] = Counter()
        self.puts: Counter[str] = Counter()
        self.list_calls = 0
        self.fail_puts: set[str] = set()

    def get(self, path: str) -> bytes:
        self.gets[path] += 1
        return self._inner.get(path)

    def put(self, path: str, data: bytes) -> None:
        if path in self.fail_puts:
            raise BackendIOError(f"injected write failure for {path}")
        self.puts[path] += 1
        self._inner.put(path, data)

    def delete(self, path: str) -> None:
        self._inner.delete(path)

    def list(self, prefix: str = "") -> list[str]:
        self.list_calls += 1
        return self._inner.list(prefix)

    def binary_gets(self) -> int:
        return sum(n for path, n in self.gets.items() if path.endswith(".elf"))


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client.

    Raises real ``botocore`` ``ClientError``s with the codes S3 uses, and
    paginates ``list_objects_v2`` in pages of ``page_size`` keys.
    """

    def __init__(self, page_size: int = 2) -> None:
        self.objects: dict[str, bytes] = {}
        self.page_size = page_size
        self.pages_served = 0
        self.failing_operations: set[str] = set()

    @staticmethod
    def _error(code: str, operation: str) -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": code}}, operation)

    def _check(self, operation: str) -> None:
        if operation in self.failing_operations:
            raise self._error("InternalError", operation)

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._check("GetObject")
        if Key not in self.objects:
            raise self._error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, Bucket: str, Key: str, Body: bytes) -> dict[str, Any]:
        self._check("PutObject")
        self.objects[Key] = bytes(Body)
        return {}

    def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._check("HeadObject")
        if Key not in self.objects:
            raise self._error("404", "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._check("DeleteObject")
        self.objects.pop(Key, None)
        return {}

    def get_paginator(self, operation_name: str) -> "FakePaginator":
        assert operation_name == "list_objects_v2"
        return FakePaginator(self)


class FakePaginator:
    def __init__(self, client: FakeS3Client) -> None:
        self._client = client

    def paginate(self, Bucket: str, Prefix: str = ""):
        self._client._check("ListObjectsV2")
        keys = sorted(k for k in list(self._client.objects) if k.startswith(Prefix))
        size = self._client.page_size
        if not keys:
            self._client.pages_served += 1
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), size):
            self._client.pages_served += 1
            yield {"Contents": [{"Key": k} for k in keys[start:start + size]]}


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test storage."""
    return tmp_path


@pytest.fixture
def local_store(tmp_dir: Path) -> LocalObjectStore:
    """Provide a fresh LocalObjectStore in a temp directory."""
    return LocalObjectStore(tmp_dir / "registry")


@pytest.fixture
def counting_store(local_store: LocalObjectStore) -> CountingStore:
    """Provide a counting wrapper around the local store."""
    return CountingStore(local_store)


@pytest.fixture
def service(counting_store: CountingStore) -> RegistryService:
    """Provide a RegistryService over the counting local store."""
    return RegistryService(counting_store)


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def metadata() -> ProgramMetadata:
    """Provide the metadata used by the reference scenario."""
    return ProgramMetadata(toolchain="rust", commit="abc123", zkvm="sp1")


@pytest.fixture
def make_binary() -> Callable[[int], bytes]:
    """Factory fixture: an ELF-looking payload of the requested size."""

    def _factory(size: int = 10, fill: int = 0) -> bytes:
        body = bytes((fill + i) % 256 for i in range(max(size - len(ELF_HEADER), 0)))
        return (ELF_HEADER + body)[:size]

    return _factory
