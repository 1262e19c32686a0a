"""End-to-end registry tests — both backends, restarts, rebuilds, concurrency.

These tests exercise RegistryService, RegistryIndex, BinaryCache, the index
builder and both object stores working together.
"""

from __future__ import annotations

import random
import threading
from pathlib import Path

import pytest

from elfregistry.core.registry import RegistryService
from elfregistry.models.programs import ProgramMetadata
from elfregistry.storage.bucket import BucketObjectStore
from elfregistry.storage.layout import INDEX_OBJECT
from elfregistry.storage.local import LocalObjectStore

SCENARIO_BINARY = b"\x7fELF" + bytes([2, 1, 1, 0, 0, 0])


@pytest.fixture(params=["local", "bucket"])
def store(request, tmp_path: Path, fake_s3):
    if request.param == "local":
        return LocalObjectStore(tmp_path / "registry")
    return BucketObjectStore("registry", "prod", client=fake_s3)


class TestScenario:
    def test_demo_upload_list_download_delete(self, store, metadata: ProgramMetadata):
        service = RegistryService(store)
        assert len(SCENARIO_BINARY) == 10

        service.upload("demo", "p1", metadata, SCENARIO_BINARY)

        listing = service.list_all()
        assert list(listing) == ["demo"]
        [program] = listing["demo"]
        assert program.program_id == "p1"
        assert program.size_bytes == 10
        assert program.metadata == ProgramMetadata(
            toolchain="rust", commit="abc123", zkvm="sp1"
        )

        assert service.download("demo", "p1").binary == SCENARIO_BINARY

        service.delete_contract("demo")
        assert service.list_all() == {}
        assert store.list() == [INDEX_OBJECT]


class TestPersistence:
    def test_index_survives_restart(self, store, metadata):
        RegistryService(store).upload("demo", "p1", metadata, SCENARIO_BINARY)
        restarted = RegistryService(store)
        assert restarted.download("demo", "p1").binary == SCENARIO_BINARY
        assert restarted.index.rebuild_count == 0

    def test_rebuild_after_index_loss(self, store, metadata):
        service = RegistryService(store)
        ids = [f"p{i}" for i in range(6)]
        random.Random(7).shuffle(ids)
        for pid in ids:
            service.upload("demo" if pid < "p3" else "other", pid, metadata, pid.encode())
        service.delete_program("demo", "p0")
        expected = service.list_all()

        store.delete(INDEX_OBJECT)
        restarted = RegistryService(store)

        assert restarted.list_all() == expected
        assert restarted.index.rebuild_count == 1
        # The rebuilt index was persisted.
        assert RegistryService(store).index.load() == restarted.index.load()

    def test_rebuild_after_index_corruption(self, store, metadata):
        service = RegistryService(store)
        service.upload("demo", "p1", metadata, SCENARIO_BINARY)
        store.put(INDEX_OBJECT, b"\x00\x01garbage")

        restarted = RegistryService(store)
        assert [p.program_id for p in restarted.list_contract("demo")] == ["p1"]


class TestConcurrency:
    def test_parallel_uploads_to_distinct_keys(self, store, metadata):
        service = RegistryService(store)
        errors: list[BaseException] = []

        def upload(worker: int) -> None:
            try:
                for i in range(5):
                    service.upload(f"c{worker % 3}", f"w{worker}-{i}", metadata, bytes([worker, i]))
            except BaseException as exc:  # surfaced by the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=upload, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert service.index.load().program_count() == 40
        # Nothing was lost between the in-memory and persisted copies.
        assert RegistryService(store).index.load() == service.index.load()

    def test_same_key_is_last_write_wins(self, store, metadata):
        service = RegistryService(store)
        payloads = [bytes([n]) * (n + 1) for n in range(6)]

        threads = [
            threading.Thread(target=service.upload, args=("demo", "p1", metadata, payload))
            for payload in payloads
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        [program] = service.list_contract("demo")
        binary = service.download("demo", "p1").binary
        assert binary in payloads
        assert program.size_bytes in {len(p) for p in payloads}

    def test_reads_during_mutations(self, store, metadata):
        service = RegistryService(store)
        service.upload("demo", "stable", metadata, SCENARIO_BINARY)
        stop = threading.Event()
        failures: list[str] = []

        def reader() -> None:
            while not stop.is_set():
                if service.download("demo", "stable").binary != SCENARIO_BINARY:
                    failures.append("stale or partial read")

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        for i in range(10):
            service.upload("demo", f"churn{i}", metadata, b"x" * i)
            service.delete_program("demo", f"churn{i}")
        stop.set()
        for thread in readers:
            thread.join()

        assert failures == []
        assert [p.program_id for p in service.list_contract("demo")] == ["stable"]

    def test_overwrites_during_downloads_settle_on_last_write(self, store, metadata):
        service = RegistryService(store)
        payloads = [bytes([n]) * (n + 1) for n in range(1, 21)]
        service.upload("demo", "hot", metadata, payloads[0])
        stop = threading.Event()
        failures: list[bytes] = []

        def reader() -> None:
            while not stop.is_set():
                binary = service.download("demo", "hot").binary
                if binary not in payloads:
                    failures.append(binary)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        for payload in payloads[1:]:
            service.upload("demo", "hot", metadata, payload)
        stop.set()
        for thread in readers:
            thread.join()

        assert failures == []
        downloaded = service.download("demo", "hot")
        assert downloaded.binary == payloads[-1]
        assert downloaded.program.size_bytes == len(payloads[-1])
