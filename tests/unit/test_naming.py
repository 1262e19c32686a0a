"""Tests for storage keys, contract name validation and object layout."""

from __future__ import annotations

import hashlib

import pytest

from elfregistry.core.hasher import (
    storage_key_for,
    validate_contract_name,
    validate_program_id,
)
from elfregistry.errors import ContractNameError, ProgramIdError, RegistryError
from elfregistry.storage.layout import (
    INDEX_OBJECT,
    binary_object_path,
    metadata_object_path,
    parse_metadata_path,
)


class TestStorageKey:
    def test_is_sha256_of_program_id(self):
        expected = hashlib.sha256(b"p1").hexdigest()
        assert storage_key_for("p1") == expected

    def test_deterministic(self):
        assert storage_key_for("abc") == storage_key_for("abc")

    def test_distinct_ids_distinct_keys(self):
        assert storage_key_for("p1") != storage_key_for("p2")

    def test_unsafe_identifier_becomes_safe_segment(self):
        key = storage_key_for("../../etc/passwd" + "x" * 5000)
        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)


class TestContractName:
    @pytest.mark.parametrize("name", ["demo", "my-contract", "c0ntract-2", "a"])
    def test_valid(self, name: str):
        assert validate_contract_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", "Demo", "has space", "a/b", "a\\b", "..", "under_score", "dot.ted"]
    )
    def test_invalid(self, name: str):
        with pytest.raises(ContractNameError):
            validate_contract_name(name)

    def test_error_is_validation_kind(self):
        with pytest.raises(ValueError):
            validate_contract_name("UPPER")
        with pytest.raises(RegistryError):
            validate_contract_name("UPPER")


class TestProgramId:
    def test_any_non_empty_id_allowed(self):
        assert validate_program_id("Some/Odd id\n") == "Some/Odd id\n"

    def test_empty_rejected(self):
        with pytest.raises(ProgramIdError):
            validate_program_id("")


class TestLayout:
    def test_object_paths(self):
        assert binary_object_path("demo", "abc") == "demo/abc.elf"
        assert metadata_object_path("demo", "abc") == "demo/abc.json"

    def test_parse_metadata_path(self):
        assert parse_metadata_path("demo/abc.json") == ("demo", "abc")

    @pytest.mark.parametrize(
        "path", [INDEX_OBJECT, "demo/abc.elf", "abc.json", "a/b/c.json", "demo/.json", "/abc.json"]
    )
    def test_parse_rejects_other_shapes(self, path: str):
        assert parse_metadata_path(path) is None
