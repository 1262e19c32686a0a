"""``elf-registry`` operator CLI.

The app callback turns the global storage options into a ``CliState``; each
subcommand builds its ``RegistryService`` from that state on first use.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from elfregistry.cli._service import CliState, build_overrides
from elfregistry.cli.commands.maintenance import reindex_cmd, status_cmd
from elfregistry.cli.commands.programs import (
    delete_cmd,
    download_cmd,
    list_cmd,
    upload_cmd,
)
from elfregistry.config import config

app = typer.Typer(
    name="elf-registry",
    help="ELF Registry: content-addressed storage for zkVM program binaries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    backend: str = typer.Option(None, "--backend", help="Storage backend: local or bucket."),
    root: Path = typer.Option(None, "--root", help="Root directory for the local backend."),
    bucket: str = typer.Option(None, "--bucket", help="Bucket name for the bucket backend."),
    prefix: str = typer.Option(None, "--prefix", help="Key prefix inside the bucket."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level (default from config)."),
) -> None:
    """Operate on the registry storage configured via ELF_REGISTRY_* settings."""
    level_name = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = CliState(overrides=build_overrides(backend, root, bucket, prefix))


# Register subcommands
app.command(name="list", help="List registered programs.")(list_cmd)
app.command(name="upload", help="Upload a program binary.")(upload_cmd)
app.command(name="download", help="Download a program binary.")(download_cmd)
app.command(name="delete", help="Delete a program or a whole contract.")(delete_cmd)
app.command(name="reindex", help="Rebuild the index from metadata blobs.")(reindex_cmd)
app.command(name="status", help="Show configuration and registry counters.")(status_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
