"""Hashing and naming helpers for storage keys and contract names.

Program identifiers are opaque and never used as file or object names
directly; they are addressed through their SHA-256 digest instead.
"""

from __future__ import annotations

import hashlib
import re

from elfregistry.errors import ContractNameError, ProgramIdError

CONTRACT_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def storage_key_for(program_id: str) -> str:
    """Deterministic storage key for a program identifier.

    The 64-character hex digest is safe as a path segment on every backend
    regardless of what the identifier contains or how long it is.
    """
    return sha256_hex(program_id.encode("utf-8"))


def validate_contract_name(contract: str) -> str:
    """Return *contract* unchanged if it is a valid contract name.

    Raises
    ------
    ContractNameError
        If the name is empty or contains anything other than ASCII
        lowercase letters, digits and ``-``.
    """
    if not CONTRACT_NAME_PATTERN.fullmatch(contract):
        raise ContractNameError(
            f"Invalid contract name {contract!r}: expected lowercase letters, "
            "digits or '-'"
        )
    return contract


def validate_program_id(program_id: str) -> str:
    """Return *program_id* unchanged unless it is empty."""
    if not program_id:
        raise ProgramIdError("Program id must not be empty")
    return program_id
