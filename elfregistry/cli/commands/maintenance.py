"""``elf-registry reindex/status`` — operator maintenance commands."""

from __future__ import annotations

import typer
from rich.panel import Panel

from elfregistry.cli._service import CliState, console, get_service, registry_errors


def reindex_cmd(ctx: typer.Context) -> None:
    """Rebuild index.json from the per-program metadata blobs."""
    service = get_service(ctx)
    with registry_errors():
        index = service.rebuild_index()
    console.print(
        f"[bold green]Index rebuilt:[/bold green] {len(index.contracts)} contracts, "
        f"{index.program_count()} programs"
    )


def status_cmd(ctx: typer.Context) -> None:
    """Show the resolved configuration and registry counters."""
    state: CliState = ctx.ensure_object(CliState)
    config = state.config()
    service = get_service(ctx)
    with registry_errors():
        stats = service.stats()

    if stats.backend == "local":
        location = str(config.local_root)
    else:
        location = f"s3://{config.bucket_name}/{config.bucket_prefix}".rstrip("/")

    console.print(
        Panel(
            "\n".join([
                f"[bold]Environment:[/bold]  {config.environment}",
                f"[bold]Backend:[/bold]      {stats.backend}",
                f"[bold]Location:[/bold]     {location}",
                f"[bold]Contracts:[/bold]    {stats.contracts}",
                f"[bold]Programs:[/bold]     {stats.programs}",
                f"[bold]Total size:[/bold]   {stats.total_bytes:,} bytes",
                f"[bold]Cache size:[/bold]   {config.cache_entries_per_contract} per contract",
            ]),
            title="[bold]ELF Registry[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
