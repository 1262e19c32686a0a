"""Shared CLI plumbing: resolve configuration overrides and build the service."""

from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from elfregistry.config import RegistryConfig
from elfregistry.core.registry import RegistryService
from elfregistry.errors import NotFoundError, RegistryError

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Global options collected by the app callback."""

    overrides: dict[str, Any] = field(default_factory=dict)
    _service: RegistryService | None = None

    def config(self) -> RegistryConfig:
        return RegistryConfig(**self.overrides)

    def service(self) -> RegistryService:
        if self._service is None:
            self._service = RegistryService.from_config(self.config())
        return self._service


def build_overrides(
    backend: str | None,
    root: Path | None,
    bucket: str | None,
    prefix: str | None,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if backend is not None:
        overrides["storage_backend"] = backend
    if root is not None:
        overrides["local_storage_path"] = root
    if bucket is not None:
        overrides["bucket_name"] = bucket
    if prefix is not None:
        overrides["bucket_prefix"] = prefix
    return overrides


def get_service(ctx: typer.Context) -> RegistryService:
    state: CliState = ctx.ensure_object(CliState)
    try:
        return state.service()
    except ValueError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@contextmanager
def registry_errors() -> Iterator[None]:
    """Print registry failures in red and exit with code 1."""
    try:
        yield
    except NotFoundError as exc:
        err_console.print(f"[yellow]Not found:[/yellow] {exc}")
        raise typer.Exit(code=1) from exc
    except RegistryError as exc:
        err_console.print(f"[red]Registry error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
