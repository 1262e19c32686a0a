"""ELF Registry CLI — Typer-based operator interface.

Provides the ``elf-registry`` command with subcommands to list, upload,
download and delete programs and to rebuild the index, operating directly
on the configured storage backend.

All output uses Rich for formatted terminal display.
"""
