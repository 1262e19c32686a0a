"""``elf-registry list/upload/download/delete`` — program operations.

These commands drive the registry core directly against the configured
backend; they do not talk to a running HTTP server.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from elfregistry.cli._service import console, get_service, registry_errors
from elfregistry.models.programs import ProgramInfo, ProgramMetadata


def _programs_table(title: str, rows: dict[str, list[ProgramInfo]]) -> Table:
    table = Table(title=title)
    table.add_column("Contract", style="cyan")
    table.add_column("Program ID", style="green", overflow="fold")
    table.add_column("Size", justify="right")
    table.add_column("Uploaded")
    table.add_column("Toolchain")
    table.add_column("Commit")
    table.add_column("zkVM")
    for contract, programs in rows.items():
        for info in programs:
            table.add_row(
                contract,
                info.program_id,
                f"{info.size_bytes:,}",
                info.uploaded_at.strftime("%Y-%m-%d %H:%M:%S"),
                info.metadata.toolchain,
                info.metadata.commit,
                info.metadata.zkvm,
            )
    return table


def list_cmd(
    ctx: typer.Context,
    contract: str = typer.Argument(None, help="Only list this contract."),
) -> None:
    """List registered programs, for every contract or for one."""
    service = get_service(ctx)
    with registry_errors():
        if contract:
            rows = {contract: service.list_contract(contract)}
        else:
            rows = service.list_all()

    if not rows:
        console.print("[dim]No programs registered.[/dim]")
        return
    console.print(_programs_table("Registered Programs", rows))


def upload_cmd(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract name (lowercase, digits, '-')."),
    program_id: str = typer.Argument(..., help="Opaque program identifier."),
    binary_path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Path to the program binary."
    ),
    toolchain: str = typer.Option(..., "--toolchain", "-t", help="Toolchain used to build."),
    commit: str = typer.Option(..., "--commit", "-c", help="Source commit."),
    zkvm: str = typer.Option(..., "--zkvm", "-z", help="Target zkVM."),
) -> None:
    """Upload a program binary, replacing any previous upload of the same id."""
    service = get_service(ctx)
    metadata = ProgramMetadata(toolchain=toolchain, commit=commit, zkvm=zkvm)
    with registry_errors():
        info = service.upload(contract, program_id, metadata, binary_path.read_bytes())

    console.print(
        f"[bold green]Uploaded[/bold green] {contract}/{info.program_id} "
        f"({info.size_bytes:,} bytes)"
    )


def download_cmd(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract name."),
    program_id: str = typer.Argument(..., help="Program identifier."),
    output: Path = typer.Option(
        ..., "--output", "-o", dir_okay=False, help="Where to write the binary."
    ),
) -> None:
    """Download a program binary to a file."""
    service = get_service(ctx)
    with registry_errors():
        downloaded = service.download(contract, program_id)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(downloaded.binary)
    meta = downloaded.program.metadata
    console.print(
        f"[bold green]Downloaded[/bold green] {contract}/{program_id} -> {output} "
        f"({len(downloaded.binary):,} bytes, toolchain={meta.toolchain}, "
        f"commit={meta.commit}, zkvm={meta.zkvm})"
    )


def delete_cmd(
    ctx: typer.Context,
    contract: str = typer.Argument(..., help="Contract name."),
    program_id: str = typer.Argument(
        None, help="Program to delete.  Omit to delete the whole contract."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete one program, or a whole contract when no program id is given."""
    target = f"{contract}/{program_id}" if program_id else f"contract {contract}"
    if not yes:
        typer.confirm(f"Delete {target}?", abort=True)

    service = get_service(ctx)
    with registry_errors():
        if program_id:
            service.delete_program(contract, program_id)
        else:
            service.delete_contract(contract)
    console.print(f"[bold red]Deleted[/bold red] {target}")
